"""
Telegram side of the bridge.

ARCHITECTURE: thin routing layer in front of command-line workers.
- Receives webhook updates for every bot identity on one endpoint
- Tracks one pending prompt per chat (context.py)
- Routes commands and answers to jobs (handlers.py)
- Replies with the token of the bot the command was addressed to

The work itself (expenses, payments, reports, products) is done by
external programs run through the job queue in chatbridge.services.
"""
