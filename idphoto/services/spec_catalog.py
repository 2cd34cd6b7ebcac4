"""Spec Catalog - каталог форматов фото.

Загрузка форматов фото на документы из YAML.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from idphoto.domain.models import SpecDef
from idphoto.shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "catalog" / "specs.yaml"


class SpecCatalog:
    """Каталог форматов фото.

    Example:
        >>> catalog = SpecCatalog.load()
        >>> catalog.find("CN_1INCH").width_px
        295

    """

    def __init__(self, specs: list[SpecDef]) -> None:
        if not specs:
            msg = "Каталог форматов пуст"
            raise ValueError(msg)
        self._specs = list(specs)
        self._by_code = {spec.code.lower(): spec for spec in self._specs}

    @classmethod
    def load(cls, path: Path = DEFAULT_CATALOG_PATH) -> "SpecCatalog":
        """Загрузить каталог из YAML.

        Записи с ошибками пропускаются с предупреждением.

        Args:
            path: Путь к YAML файлу

        Returns:
            SpecCatalog.

        Raises:
            FileNotFoundError: Если файл не существует
            ValueError: Если в файле нет ни одного валидного формата

        """
        if not path.exists():
            msg = f"Файл каталога форматов не найден: {path}"
            raise FileNotFoundError(msg)

        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        specs: list[SpecDef] = []
        for raw in data.get("specs") or []:
            try:
                specs.append(SpecDef.model_validate(raw))
            except ValidationError as e:
                logger.warning(
                    "Ошибка парсинга формата",
                    code=raw.get("code", "unknown") if isinstance(raw, dict) else "unknown",
                    error=str(e),
                )

        logger.info("Каталог форматов загружен", count=len(specs), path=str(path))
        return cls(specs)

    @property
    def specs(self) -> list[SpecDef]:
        """Все форматы в порядке каталога."""
        return list(self._specs)

    @property
    def default(self) -> SpecDef:
        """Формат по умолчанию (первый в каталоге)."""
        return self._specs[0]

    def find(self, code: str | None) -> SpecDef:
        """Найти формат по коду без учёта регистра.

        Неизвестный или пустой код даёт формат по умолчанию.
        """
        return self._by_code.get((code or "").strip().lower(), self.default)
