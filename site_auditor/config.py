# === FILE: site_auditor/config.py ===
"""
Модуль загрузки и валидации конфигурации SiteAuditor.
Схема описана через Pydantic: общие настройки аудита (AuditorConfig)
и параметры одного задания (AnalysisOptions).
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["AnalysisOptions", "AuditorConfig", "load_config", "DEFAULT_CONFIG_PATH"]


class AnalysisOptions(BaseModel):
    """Параметры одного задания: бюджеты обхода и флаги пропуска ресурсов."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    max_depth: int = Field(3, ge=0, le=10, alias="maxDepth", description="Максимальная глубина обхода.")
    max_pages: int = Field(100, ge=1, le=1000, alias="maxPages", description="Лимит страниц за запуск.")
    skip_images: bool = Field(False, alias="skipImages")
    skip_css: bool = Field(False, alias="skipCSS")
    skip_js: bool = Field(False, alias="skipJS")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class AuditorConfig(BaseModel):
    """Конфигурация сервиса аудита (краулер, очередь, оркестратор)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field(
        "Mozilla/5.0 (compatible; SiteAuditor/1.0)", min_length=1, description="Заголовок User-Agent."
    )
    navigation_timeout: float = Field(30.0, gt=0, description="Таймаут загрузки одной страницы (секунд).")
    crawl_delay: float = Field(1.0, ge=0, description="Пауза между запросами к сайту (секунд).")
    traversal: Literal["dfs", "bfs"] = Field("dfs", description="Порядок обхода ссылок.")
    max_attempts: int = Field(3, ge=1, description="Число попыток выполнения задания.")
    backoff_base: float = Field(2.0, ge=0, description="Первая пауза перед повтором (секунд).")
    progress_interval: float = Field(2.0, gt=0, description="Период сохранения прогресса (секунд).")
    isolate_modules: bool = Field(
        False, description="Изолировать сбой модуля: агрегат считается по успешным модулям."
    )
    fatal_modules: List[str] = Field(
        default_factory=list, description="При изоляции: модули, сбой которых проваливает весь запуск."
    )
    default_options: AnalysisOptions = Field(default_factory=AnalysisOptions)

    @field_validator("fatal_modules", mode="before")
    def _lower_module_names(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [str(name).strip().lower() for name in v]
        return v


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> AuditorConfig:
    """
    Читает YAML или JSON и возвращает проверенный AuditorConfig.
    Без пути берётся configs/default.yaml, а при его отсутствии значения по умолчанию.
    Указанный, но отсутствующий файл приводит к FileNotFoundError.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return AuditorConfig()
        path_obj = DEFAULT_CONFIG_PATH
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return AuditorConfig(**data)
