"""
Модуль для загрузки и валидации конфигурации SiteDigest.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

__all__ = (
    "FormatStyle",
    "FormatRule",
    "ScreenshotConfig",
    "ImageConfig",
    "DigestConfig",
    "load_config",
)

DEFAULT_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"


class FormatStyle(str, Enum):
    """Варианты HTML-блока в текстовом артефакте."""

    LIST_ITEM = "list_item"
    BLURB = "blurb"


class FormatRule(BaseModel):
    """Правило: подстрока URL -> шаблон вывода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    marker: str = Field(..., min_length=1, description="Подстрока, которую ищем в URL сайта.")
    style: FormatStyle = Field(FormatStyle.LIST_ITEM, description="Шаблон для совпавших сайтов.")
    skip_screenshot: bool = Field(False, description="Не снимать скриншот для совпавших сайтов.")

    def matches(self, url: str) -> bool:
        return self.marker in url


class ScreenshotConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = True
    render_delay_ms: int = Field(1000, ge=0, description="Пауза после загрузки страницы.")
    viewport_width: int = Field(1024, gt=0)
    viewport_height: int = Field(768, gt=0)
    full_page: bool = False
    image_type: str = Field("png", pattern=r"^(png|jpeg)$")


class ImageConfig(BaseModel):
    """Параметры инструмента обрезки изображений."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    output_dir: Path = Field(Path("screenshot-image"), description="Папка для JPEG-миниатюр.")
    width: int = Field(400, gt=0)
    height: int = Field(200, gt=0)
    quality: int = Field(85, ge=1, le=100)
    format: str = Field("jpeg", pattern=r"^jpeg$")
    banner_selector: str = Field(".breadcrumb-banner", min_length=1)
    clear_output: bool = Field(True, description="Очистить папку перед запуском.")


def _default_formats() -> List[FormatRule]:
    return [FormatRule(marker="buscandriu", style=FormatStyle.LIST_ITEM, skip_screenshot=True)]


class DigestConfig(BaseModel):
    """Конфигурация для одного запуска."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    sites: List[str] = Field(default_factory=list, description="Список URL для обработки.")
    output_dir: Path = Field(Path("output"), description="Папка для .md и скриншотов.")
    timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    screenshot: ScreenshotConfig = Field(default_factory=ScreenshotConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    formats: List[FormatRule] = Field(default_factory=_default_formats)

    def format_rule_for(self, url: str) -> Optional[FormatRule]:
        """Первое правило, чей маркер встречается в URL, или None."""
        for rule in self.formats:
            if rule.matches(url):
                return rule
        return None


_DEFAULT_CFG = Path("configs/default.yaml")


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


def load_config(path: Union[str, Path, None]) -> DigestConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект DigestConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
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

    try:
        return DigestConfig(**data)
    except ValidationError:
        raise
