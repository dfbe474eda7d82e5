"""
Fixed values shared by the encoder, transport and data synthesis.

Everything here is constant for the generator; settings that vary per
invocation are resolved in config.py.
"""

# Instrumentation scope reported on every resource block.
SCOPE_NAME = "sample-datagen"
SCOPE_VERSION = "0.0.1"

USER_AGENT = "spacefleet-datagen"
PROTOBUF_CONTENT_TYPE = "application/x-protobuf"

# Reserved attribute keys understood by the ingestion side.
KEY_ENTITY_RELATIONSHIPS = "appd.fmm.entity.relations"
KEY_IS_EVENT = "appd.isevent"
KEY_EVENT_TYPE = "appd.event.type"

# Value of telemetry.sdk.name set on entities that do not carry one.
SDK_NAME = "fsoc-melt"

# Synthesized data points per metric without data, each one minute long.
RANDOM_DATAPOINT_COUNT = 5
RANDOM_DATAPOINT_STEP_NS = 60 * 1_000_000_000
RANDOM_VALUE_RANGE = 50.0

# Records per signal kind in the geometry sample document.
SAMPLE_RECORD_COUNT = 4
