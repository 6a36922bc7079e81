# tests/test_config_handler.py

import pytest
from unittest.mock import mock_open, patch

from panel_cmdline import config_handler

# --- Test Cases for load_jsonc_file ---

@patch("os.path.exists", return_value=True)
def test_load_jsonc_with_single_line_comments(mock_exists):
    """Tests loading a JSONC file with // style comments."""
    jsonc_content = """
    {
        // Where CDPATH is looked up
        "cdpath_variable": "CDPATH", // Another comment
        "max_path_length": 4096
    }
    """
    expected_dict = {"cdpath_variable": "CDPATH", "max_path_length": 4096}

    with patch("builtins.open", mock_open(read_data=jsonc_content)) as mock_file:
        result = config_handler.load_jsonc_file("dummy/path.jsonc")
        mock_file.assert_called_once_with("dummy/path.jsonc", 'r', encoding='utf-8')
        assert result == expected_dict

@patch("os.path.exists", return_value=True)
def test_load_jsonc_with_multi_line_comments(mock_exists):
    """Tests loading a JSONC file with /* */ style comments."""
    jsonc_content = """
    {
        /* Behaviour of the
           command line */
        "use_subshell": true /* on by default */
    }
    """
    with patch("builtins.open", mock_open(read_data=jsonc_content)):
        assert config_handler.load_jsonc_file("dummy/path.jsonc") == {"use_subshell": True}

@patch("os.path.exists", return_value=True)
def test_load_jsonc_keeps_slashes_inside_strings(mock_exists):
    """URLs inside values must not be mistaken for comments."""
    jsonc_content = '{"home_dir": "ftp://host/pub", "glob": "/*.c"} // trailing'
    with patch("builtins.open", mock_open(read_data=jsonc_content)):
        result = config_handler.load_jsonc_file("dummy/path.jsonc")
    assert result == {"home_dir": "ftp://host/pub", "glob": "/*.c"}

@patch("os.path.exists", return_value=True)
def test_load_jsonc_with_malformed_json(mock_exists):
    malformed_content = '{"key": "value",}' # Trailing comma
    with patch("builtins.open", mock_open(read_data=malformed_content)):
        assert config_handler.load_jsonc_file("dummy/path.jsonc") is None

@patch("os.path.exists", return_value=False)
def test_load_jsonc_file_not_found(mock_exists):
    assert config_handler.load_jsonc_file("non/existent/path.jsonc") is None

# --- merge_configs / get_nested_config ---

def test_merge_configs_is_recursive_and_does_not_mutate_base():
    base = {"paths": {"cdpath_variable": "CDPATH", "max_path_length": 4096}, "ui": {"command_prompt": True}}
    override = {"paths": {"max_path_length": 256}, "behavior": {"use_subshell": False}}
    merged = config_handler.merge_configs(base, override)
    assert merged == {
        "paths": {"cdpath_variable": "CDPATH", "max_path_length": 256},
        "ui": {"command_prompt": True},
        "behavior": {"use_subshell": False},
    }
    assert base["paths"]["max_path_length"] == 4096

@pytest.mark.parametrize("key_path, default, expected", [
    ("paths.max_path_length", None, 4096),
    ("paths", None, {"max_path_length": 4096, "home_dir": None}),
    ("paths.home_dir", "/fallback", None),
    ("paths.missing", "/fallback", "/fallback"),
    ("paths.max_path_length.deeper", 7, 7),
    ("nothing.here", None, None),
])
def test_get_nested_config(key_path, default, expected):
    config = {"paths": {"max_path_length": 4096, "home_dir": None}}
    assert config_handler.get_nested_config(config, key_path, default) == expected

# --- load_configuration ---

def test_load_configuration_merges_user_file(tmp_path):
    default_file = tmp_path / "default.json"
    default_file.write_text('{"paths": {"cdpath_variable": "CDPATH"}, // base\n "ui": {"command_prompt": true}}')
    user_file = tmp_path / "user.json"
    user_file.write_text('{"ui": {"command_prompt": false}}')

    config = config_handler.load_configuration(str(default_file), str(user_file))
    assert config == {"paths": {"cdpath_variable": "CDPATH"}, "ui": {"command_prompt": False}}

def test_load_configuration_without_user_file(tmp_path):
    default_file = tmp_path / "default.json"
    default_file.write_text('{"ui": {"command_prompt": true}}')
    config = config_handler.load_configuration(str(default_file), str(tmp_path / "absent.json"))
    assert config == {"ui": {"command_prompt": True}}

def test_load_configuration_missing_defaults_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        config_handler.load_configuration(str(tmp_path / "absent.json"), str(tmp_path / "user.json"))

def test_shipped_default_configuration_loads():
    config = config_handler.load_jsonc_file(config_handler.DEFAULT_CONFIG_PATH)
    assert config is not None
    assert config_handler.get_nested_config(config, "paths.max_path_length") == 4096
    assert config_handler.get_nested_config(config, "paths.cdpath_variable") == "CDPATH"
    assert config_handler.get_nested_config(config, "ui.command_prompt") is True
