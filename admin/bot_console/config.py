import os

from dotenv import load_dotenv

from .extensions import AUTOSCROLL_THRESHOLD, DAEMON_PREFIX, MAX_CONSOLE_LINES

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me-in-production')
    SESSION_COOKIE_HTTPONLY = True
    PERMANENT_SESSION_LIFETIME = 3600

    ADMIN_TOKEN  = os.environ.get('ADMIN_TOKEN', '')
    WS_URL       = os.environ.get('WS_URL', 'http://localhost:3001')
    ACCESS_TOKEN = os.environ.get('ACCESS_TOKEN', '')
    # Connect the transport when the app starts instead of on first attach.
    WS_AUTOCONNECT = os.environ.get('WS_AUTOCONNECT', '1') == '1'

    MAX_CONSOLE_LINES    = int(os.environ.get('MAX_CONSOLE_LINES', MAX_CONSOLE_LINES))
    AUTOSCROLL_THRESHOLD = int(os.environ.get('AUTOSCROLL_THRESHOLD', AUTOSCROLL_THRESHOLD))
    DAEMON_PREFIX        = os.environ.get('DAEMON_PREFIX', DAEMON_PREFIX)
