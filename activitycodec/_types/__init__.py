from activitycodec._types.base import *
from activitycodec._types import columns as special_columns
from activitycodec._types.activitydata import ActivityData
from activitycodec._types.activity import Activity, Lap, Trackpoint, Sport
from activitycodec._types.workout import (
    Workout, Step, Repeat, Duration, Target)
