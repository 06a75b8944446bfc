import logging

import pytest

from sitesync.config import DEFAULT_CONFIG, ConfigError, load_config


def test_defaults_resolve_against_project_root(tmp_path):
    config = load_config(tmp_path)
    assert config.markdown_dir == tmp_path / "markdown"
    assert config.css_dir == tmp_path / "css"
    assert config.output_dir == tmp_path / "build"
    assert config.css_output_dir == tmp_path / "build" / "css"
    assert config.bucket is None
    assert config.upload is True
    assert config.upload_concurrency == DEFAULT_CONFIG["upload_concurrency"]


def test_file_then_overrides(tmp_path):
    (tmp_path / "sitesync.yaml").write_text(
        "bucket: from-file\nregion: eu-west-1\noutput_dir: public\nupload_concurrency: 2\n",
        encoding="utf-8",
    )
    config = load_config(tmp_path, {"bucket": "from-cli", "region": None})
    assert config.bucket == "from-cli"
    assert config.region == "eu-west-1"
    assert config.output_dir == tmp_path / "public"
    assert config.upload_concurrency == 2


def test_absolute_paths_kept(tmp_path):
    target = tmp_path / "elsewhere"
    config = load_config(tmp_path, {"output_dir": target})
    assert config.output_dir == target


def test_unknown_keys_are_ignored(tmp_path, caplog):
    (tmp_path / "sitesync.yaml").write_text("colour: blue\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="sitesync.config"):
        config = load_config(tmp_path)
    assert not hasattr(config, "colour")
    assert "unknown config key" in caplog.text


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "bucket: [unclosed\n",
        "upload_concurrency: 0\n",
        "timeout: -5\n",
        "hash_algorithm: shake_128\n",
        "hash_algorithm: crc32\n",
    ],
)
def test_invalid_config(tmp_path, content):
    (tmp_path / "sitesync.yaml").write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_empty_file_uses_defaults(tmp_path):
    (tmp_path / "sitesync.yaml").write_text("", encoding="utf-8")
    assert load_config(tmp_path).region == "us-east-2"
