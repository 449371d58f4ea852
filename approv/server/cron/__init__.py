"""
Scheduled jobs for the Approv server.

Each job is a standalone entry point meant to be run by an external
scheduler (cron, a platform scheduler) rather than inside the API process.
"""
