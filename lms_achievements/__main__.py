import sys

from lms_achievements.main import run

sys.exit(run())
