#!/usr/bin/env python3
"""
Bot Console
Live, bounded console transcripts of managed bots, fed by the backend's
Socket.IO event stream.
"""

import logging
import os

from bot_console import create_app

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO'),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = create_app()


if __name__ == '__main__':
    cfg = app.console_config
    print("=" * 50)
    print("Bot Console")
    print("=" * 50)
    print(f"Backend:          {cfg.WS_URL}")
    print(f"Console lines:    {cfg.MAX_CONSOLE_LINES}")
    print(f"Access:           http://0.0.0.0:5000")
    print("=" * 50)

    app.run(host='0.0.0.0', port=5000, debug=False)
