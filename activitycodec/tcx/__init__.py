"""
Decode Garmin's Training Center XML (TCX) format [1]_.

`read` returns a list of `Activity` values, one per ``<Activity>`` element
that has at least one lap. Per-activity totals are summed over laps rather
than read from the file; see `activitycodec._types.activity` for the model.

Vendor extensions (``ActivityExtension/v2``) are looked up under ``LX`` and
``TPX`` regardless of the prefix a device chose for them.


.. [1] https://www8.garmin.com/xmlschemas/TrainingCenterDatabasev2.xsd

"""
from activitycodec.tcx._reading import read, gen_activities, gen_records
from activitycodec.tcx._reading import read_and_format
