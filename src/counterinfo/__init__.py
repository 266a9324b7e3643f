"""counterinfo - Combine counter metadata reported by many sources.

Reports from different collectors or shards describe which counters exist,
which dimensions they are sliced by and over what time range they were
observed. counterinfo merges them into one deduplicated view.
"""

__version__ = "0.1.0"

from counterinfo.models import CounterDescriptor, CounterKey, Report
from counterinfo.combiner import SampleCombiner, merge, merge_sample_data
from counterinfo.config import Config, CombinerConfig, LoggingConfig

__all__ = [
    "CounterDescriptor",
    "CounterKey",
    "Report",
    "SampleCombiner",
    "merge",
    "merge_sample_data",
    "Config",
    "CombinerConfig",
    "LoggingConfig",
]
