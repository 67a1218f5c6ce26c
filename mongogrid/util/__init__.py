from .counting_pipeline import CountingPipeline, PageResult
from .pipeline_settings_handler import MongoPipelineSettingsHandler
