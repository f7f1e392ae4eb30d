__version__ = '0.1.0'

# Read and write exercise activity files:
#   + activitycodec.tcx decodes Training Center XML into Activity values
#   + activitycodec.fit encodes structured workouts into binary FIT files
#   + activitycodec.canonical folds both (and Strava payloads) into one record

from loguru import logger

from activitycodec._types import (
    Activity, Lap, Trackpoint, Sport, Workout, Step, Repeat, Duration, Target)


# Library code stays quiet unless the application opts in.
logger.disable('activitycodec')
