# Duration classification (seconds)
SHORT_VIDEO_MAX = 300
LONG_VIDEO_MIN = 3600
VERY_SHORT_VIDEO_MAX = 40           # below this a 2x2 sheet is used regardless of --grid
VERY_SHORT_CAPTURE_COUNT = 4

SHORT_START_OFFSET = 5
SHORT_TAIL_MARGIN = 10              # seconds removed from the usable span of short videos
MEDIUM_START_OFFSET = 30
LONG_START_OFFSET = 120
LONG_ENDING_EXCLUDED = 600          # never sample the last 10 minutes of long videos

MIN_SAMPLE_INTERVAL = 1.0

# Tile planning
GRID_BUCKETS = [
    (4, (2, 2)),
    (6, (3, 2)),
    (9, (3, 3)),
    (12, (4, 3)),
    (15, (5, 3)),
]
DEFAULT_GRID = "3x2"
DEFAULT_CANVAS_WIDTH = 1920
DEFAULT_CANVAS_HEIGHT = 1080
COLLAGE_BACKGROUND = "black"

# Capture settings
MAX_CAPTURE_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 0.5
DEFAULT_CAPTURE_QUALITY = 6         # ffmpeg -q:v, 2 (best) .. 31
DEFAULT_MIN_LENGTH_SECONDS = 0.0

# Naming
SCREENSHOT_MARKER = "-screenshot-"
SCREENSHOT_EXTENSION = ".jpg"
VIDEO_COLLAGE_SUFFIX = "-videocollage.jpg"
IMAGE_COLLAGE_SUFFIX = "-imagecollage.jpg"
COLLAGE_DIR_MARKER = "-collage"
VIDEO_COLLAGE_DIR = "video-collages"
IMAGE_COLLAGE_DIR = "image-collages"

# Media formats
SUPPORTED_VIDEO_FORMATS = ['.mp4', '.mkv', '.avi', '.mov', '.flv', '.wmv']
SUPPORTED_IMAGE_FORMATS = ['.jpg', '.jpeg', '.png', '.webp', '.bmp']

# Default settings
DEFAULT_CONFIG_PATH = "config/collage_config.json"
ENV_PREFIX = "COLLAGE_"
