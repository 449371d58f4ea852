"""
Application services.

Business operations behind the API routes, one module per area, plus the
clients for external providers (Resend, Clerk, Monday.com, Dropbox, Slack
and Cloudflare R2). Route handlers get them through :mod:`.deps`.
"""
