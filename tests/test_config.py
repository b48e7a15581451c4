# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from site_auditor.config import AnalysisOptions, AuditorConfig, load_config


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("crawl_delay: 0.5\ntraversal: bfs", ".yaml", None),
        (json.dumps({"crawl_delay": 0.5, "traversal": "bfs"}), ".json", None),
        ("traversal: sideways", ".yaml", ValidationError),
        ("unknown_field: 1", ".yaml", ValidationError),
        ("key: [unclosed", ".yaml", ValueError),
        ("- just\n- a list", ".yaml", TypeError),
        ("{not json", ".json", ValueError),
        ("crawl_delay = 1", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, AuditorConfig)
        assert cfg.crawl_delay == 0.5
        assert cfg.traversal == "bfs"


def test_load_config_default_missing_falls_back(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config(None)
    assert cfg == AuditorConfig()
    assert cfg.max_attempts == 3
    assert cfg.backoff_base == 2.0


def test_load_config_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("max_attempts: 5\n", encoding="utf-8")
    assert load_config(None).max_attempts == 5


def test_explicit_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_bundled_default_config_is_valid():
    path = Path(__file__).resolve().parent.parent / "configs" / "default.yaml"
    cfg = load_config(path)
    assert cfg.default_options == AnalysisOptions()
    assert cfg.navigation_timeout == 30.0


def test_analysis_options_aliases_and_bounds():
    opts = AnalysisOptions.model_validate({"maxDepth": 0, "maxPages": 1, "skipCSS": True})
    assert opts.max_depth == 0
    assert opts.skip_css is True
    assert opts.to_dict() == {
        "maxDepth": 0,
        "maxPages": 1,
        "skipImages": False,
        "skipCSS": True,
        "skipJS": False,
    }
    assert AnalysisOptions(max_pages=7).max_pages == 7

    with pytest.raises(ValidationError):
        AnalysisOptions(max_depth=11)
    with pytest.raises(ValidationError):
        AnalysisOptions(max_pages=0)


def test_fatal_modules_are_lowercased():
    cfg = AuditorConfig(fatal_modules=["SEO", " Security "])
    assert cfg.fatal_modules == ["seo", "security"]
