APP_ORG = "FocusForge"
APP_NAME = "FocusForge"

ENV_WORK_DIR = "FOCUSFORGE_WORK_DIR"
ENV_ENFORCEMENT = "FOCUSFORGE_ENFORCEMENT"

SESSION_STATE_FILE = "current_session.json"
BREAK_STATE_FILE = "current_break.json"
ENFORCEMENT_STATE_FILE = "enforcement.json"
POMODORO_COUNT_FILE = "pomodoro_count"
LOG_FILE = "focusforge.log"

ARCHIVE_SESSIONS = "sessions"
ARCHIVE_BREAKS = "breaks"
ARCHIVE_KINDS = (ARCHIVE_SESSIONS, ARCHIVE_BREAKS)

TIMER_SESSION = "session_timer"
TIMER_REMINDER = "reminder_timer"
TIMER_BREAK = "break_timer"
TIMER_SCHEDULER = "scheduled_break"
TIMER_KINDS = (TIMER_SESSION, TIMER_REMINDER, TIMER_BREAK, TIMER_SCHEDULER)

MODE_STRICT = "strict"
MODE_MODERATE = "moderate"
MODE_COACHING = "coaching"
MODE_OFF = "off"
ENFORCEMENT_MODES = (MODE_STRICT, MODE_MODERATE, MODE_COACHING, MODE_OFF)
DEFAULT_ENFORCEMENT_MODE = MODE_MODERATE

BREAK_SHORT = "short"
BREAK_LONG = "long"
BREAK_CUSTOM = "custom"
BREAK_TYPES = (BREAK_SHORT, BREAK_LONG, BREAK_CUSTOM)

SKIP_NEVER = "never"
SKIP_AFTER50 = "after50"
SKIP_ALWAYS = "always"
SKIP_TYPE_BASED = "type-based"
SKIP_MODES = (SKIP_NEVER, SKIP_AFTER50, SKIP_ALWAYS, SKIP_TYPE_BASED)

# A session or break counts as complete once this share of its planned length has elapsed.
COMPLETION_PERCENT = 80

STATUS_INACTIVE = "inactive"
STATUS_ACTIVE = "active"
STATUS_PAUSED = "paused"
LIVE_STATUSES = (STATUS_ACTIVE, STATUS_PAUSED)

CONFIG_SECTION_WORK = "work"
CONFIG_SECTION_ENFORCEMENT = "enforcement"
