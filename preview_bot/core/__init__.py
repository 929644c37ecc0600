"""Discord-facing layer: the bot, embed waiting and reply formatting."""
