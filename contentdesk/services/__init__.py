"""Business-logic services.  Each takes its collaborators by constructor injection."""
