"""
Configuration Manager

This module handles persistent storage and retrieval of stack manager settings.
Settings are stored in a JSON file in the user's application data directory.

Inputs:
    - Stack manager preferences (notification, image ID rendering, ordering)

Outputs:
    - Loaded configuration values
    - Saved configuration file

Requirements:
    - json module (standard library)
    - pathlib module (standard library)
    - os module (standard library)
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union


class ConfigManager:
    """
    Manages stack manager configuration.

    Handles loading and saving of settings including:
    - Whether stack-updated callbacks run on every build
    - Whether WADO-URI image IDs are preferred over WADO-RS ones
    - Whether display-set images are ordered by InstanceNumber
    """

    def __init__(self, config_filename: str = "dicom_stack_config.json",
                 config_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_filename: Name of the configuration file to use
            config_dir: Directory holding the file; defaults to the user's
                application data directory
        """
        if config_dir is not None:
            self.config_dir = Path(config_dir)
        elif os.name == 'nt':  # Windows
            app_data = os.getenv('APPDATA', os.path.expanduser('~'))
            self.config_dir = Path(app_data) / "DICOMStackManager"
        else:  # Mac/Linux
            self.config_dir = Path.home() / ".config" / "DICOMStackManager"

        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.config_path = self.config_dir / config_filename

        self.default_config: Dict[str, Any] = {
            "notify_on_build": True,  # Call stack-updated callbacks from make_and_add_stack
            "prefer_wadouri": False,  # Build dicomweb: IDs even when a WADO-RS locator exists
            "sort_images_by_instance_number": True,  # Order display-set images by InstanceNumber
        }

        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from file, or return defaults if file doesn't exist.

        Returns:
            Dictionary containing configuration values
        """
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    loaded_config = json.load(f)
                if not isinstance(loaded_config, dict):
                    print(f"Warning: Ignoring config file with unexpected content: {self.config_path}")
                    return self.default_config.copy()
                # Merge with defaults to ensure all keys exist
                config = self.default_config.copy()
                config.update(loaded_config)
                return config
            except (json.JSONDecodeError, IOError) as e:
                print(f"Warning: Could not load config file: {e}")
                return self.default_config.copy()
        return self.default_config.copy()

    def save_config(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if save was successful, False otherwise
        """
        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=4, ensure_ascii=False)
            return True
        except IOError as e:
            print(f"Error saving config file: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key to retrieve
            default: Default value if key doesn't exist

        Returns:
            Configuration value or default
        """
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            key: Configuration key to set
            value: Value to set
        """
        self.config[key] = value

    def reset_to_defaults(self) -> None:
        """Replace the current configuration with the defaults and save it."""
        self.config = self.default_config.copy()
        self.save_config()

    def get_notify_on_build(self) -> bool:
        """
        Get whether stack-updated callbacks are called when a stack is built.

        Returns:
            True if callbacks are notified on build
        """
        return bool(self.config.get("notify_on_build", True))

    def set_notify_on_build(self, enabled: bool) -> None:
        """
        Set whether stack-updated callbacks are called when a stack is built.

        Args:
            enabled: True to notify callbacks on build
        """
        self.config["notify_on_build"] = bool(enabled)
        self.save_config()

    def get_prefer_wadouri(self) -> bool:
        """
        Get whether WADO-URI image IDs are preferred over WADO-RS image IDs.

        Returns:
            True if WADO-URI is preferred
        """
        return bool(self.config.get("prefer_wadouri", False))

    def set_prefer_wadouri(self, enabled: bool) -> None:
        """
        Set whether WADO-URI image IDs are preferred over WADO-RS image IDs.

        Args:
            enabled: True to prefer WADO-URI
        """
        self.config["prefer_wadouri"] = bool(enabled)
        self.save_config()

    def get_sort_images_by_instance_number(self) -> bool:
        """
        Get whether display-set images are ordered by InstanceNumber.

        Returns:
            True if images are sorted by InstanceNumber
        """
        return bool(self.config.get("sort_images_by_instance_number", True))

    def set_sort_images_by_instance_number(self, enabled: bool) -> None:
        """
        Set whether display-set images are ordered by InstanceNumber.

        Args:
            enabled: True to sort by InstanceNumber, False to keep input order
        """
        self.config["sort_images_by_instance_number"] = bool(enabled)
        self.save_config()
