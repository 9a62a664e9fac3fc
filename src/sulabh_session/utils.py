import yaml

from pathlib import Path
from typing import Any

def load_config(config_path: str = 'cfg/config.yaml', subconfig: str | None = None) -> dict[str, Any]:
   """
   Load configuration from YAML file.
   
   Args:
      config_path: Path to config.yaml file.
      subconfig: Optional top-level section to return (e.g. 'auth').
      
   Returns:
      Configuration (or the requested section) as a dictionary.
   """
   try:
      config_file = Path(config_path)
      if not config_file.exists():
         raise FileNotFoundError(f"config.yaml not found at: {config_path}")
      with open(config_file, 'r', encoding='utf-8') as f:
         config = yaml.safe_load(f) or {}

      if not isinstance(config, dict):
         raise ValueError("config.yaml must contain a mapping at top level")

      if subconfig is None:
         return config
      if subconfig not in config:
         raise KeyError(f"Section '{subconfig}' not found in config.yaml")
      return config[subconfig] or {}

   except Exception as e:
      raise RuntimeError(f"Failed to load config.yaml: {e}")
