"""
Write (and verify) files in the Flexible and Interoperable data Transfer
(FIT) protocol [1]_.

Only workout files are written: a file_id message, a workout message and
one workout_step message per step of a structured workout. The protocol
internals, i.e. the byte writer, CRC and record framing, are in the
`_protocol` module; the slice of the FIT profile used is in `_profile`.

The `_reading` module reads files back strictly (both CRCs checked). It is
used to verify what was written rather than to decode device recordings.


.. [1] https://developer.garmin.com/fit/protocol/

"""
from activitycodec.fit._writing import encode_workout as write
from activitycodec.fit._writing import encode_workout, fit_filename, plan_steps
from activitycodec.fit._reading import gen_fit_messages, read_messages
from activitycodec.fit._protocol import crc16, fixed_string, FitWriter
