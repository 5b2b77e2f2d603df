from schema_synth.config.settings import SynthConfig, configure_logging, get_config, set_config
