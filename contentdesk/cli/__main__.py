"""Allow ``python -m contentdesk.cli`` execution."""

from contentdesk.cli.commands import main

main()
