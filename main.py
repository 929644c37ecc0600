"""Run the preview bot: ``python main.py [--debug] [--config-check] [--reupload URL]``."""

from preview_bot.main import run_bot

if __name__ == "__main__":
    run_bot()
