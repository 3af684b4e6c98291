"""Gmail OAuth web application.

A small web app that signs users in with Google, keeps their OAuth tokens in
a server-side session and relays a handful of Gmail API calls for them.
"""

__version__ = "1.0.0"
