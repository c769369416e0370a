import re

# Capacity of a console session's transcript. Appending past this evicts
# the oldest entry first.
MAX_CONSOLE_LINES = 1000

# A scroll position closer than this to the bottom keeps autoscroll on.
AUTOSCROLL_THRESHOLD = 50

DAEMON_PREFIX = '[Dead Studios Daemon]:'

# Prompt prefixed to synthetic lifecycle entries.
SYSTEM_PROMPT = 'container@deadstudios~'

EMPTY_PLACEHOLDER = ('No logs available', 'Start the bot to see console output')

ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
