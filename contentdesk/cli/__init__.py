"""Command-line tools for contentdesk.

Run ``python -m contentdesk.cli <command>``:

- ``init-db``: create database tables.
- ``transcribe DOCUMENT_ID``: run the transcription pipeline for one document.
- ``ingest DOCUMENT_ID``: chunk, embed, and store a completed document.
- ``delete DOCUMENT_ID [...]``: delete documents with their vectors and blobs.
- ``purge``: remove blobs older than the retention window (schedule daily).

Commands run through the same job runner the API uses, so transient
failures are retried with step replay.
"""
