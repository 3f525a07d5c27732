import os
import dotenv
import logging

dotenv.load_dotenv()

CONFIG_PATH = os.environ.get("BUILDBRIDGE_CONFIG", "buildbridge.yml")

GITHUB_TOKEN = os.environ.get("GITHUB_TOKEN")
GITHUB_WEBHOOK_SECRET = os.environ.get("GITHUB_WEBHOOK_SECRET")

OVERRIDE_LOGGING = logging.getLevelName(os.environ.get("OVERRIDE_LOGGING", "INFO"))

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
TELEGRAM_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID")

DRY_RUN = os.environ.get("DRY_RUN", "false") == "true"
