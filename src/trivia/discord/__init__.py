"""Discord bot integration for the trivia relay.

The bot runs in-process with FastAPI, sharing the same event loop, and
relays slash commands to the backend over HTTP.

Optional: if DISCORD_BOT_TOKEN is not set, the app runs without Discord.
"""
