"""Project configuration loaded from ``.apidoc.yaml``.

Example::

    version: 1.0.0
    inputs:
      - dir: ./src
        lang: go
        recursive: true
    output:
      path: ./openapi.yaml
      format: yaml
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from apidoc.errors import ApidocError, ErrorKind
from apidoc.formats import is_semver
from apidoc.scanner import Languages

CONFIG_FILENAME = ".apidoc.yaml"
OUTPUT_FORMATS = ("json", "yaml")


class InputOptions(BaseModel):
    dir: str = ""
    lang: str = ""
    recursive: bool = False
    exts: list[str] = []

    def sanitize(self, languages: Languages) -> None:
        if not self.dir:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "dir")
        if not self.lang:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "lang")
        language = languages.get(self.lang)
        if language is None:
            raise ApidocError(ErrorKind.INVALID_FORMAT, "lang", detail=self.lang)
        if not self.exts:
            self.exts = list(language.exts)


class OutputOptions(BaseModel):
    path: str = ""
    format: str = "yaml"

    def sanitize(self) -> None:
        if not self.path:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "path")
        if self.format not in OUTPUT_FORMATS:
            raise ApidocError(ErrorKind.INVALID_FORMAT, "format", detail=self.format)


class Config(BaseModel):
    version: str = ""
    inputs: list[InputOptions] = []
    output: OutputOptions | None = None

    def sanitize(self, languages: Languages | None = None) -> None:
        """Validate in place; relative dirs/paths are kept as given."""
        languages = languages or Languages.default()

        if not is_semver(self.version):
            raise ApidocError(ErrorKind.INVALID_FORMAT, "version", detail=self.version)

        if not self.inputs:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "inputs")

        if self.output is None:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "output")

        for index, opt in enumerate(self.inputs):
            try:
                opt.sanitize(languages)
            except ApidocError as err:
                raise err.prefix("inputs", index)

        try:
            self.output.sanitize()
        except ApidocError as err:
            raise err.prefix("output")


def load_config(path: Path) -> Config:
    """Load a config file. Structural problems are reported as INVALID_FORMAT."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise ApidocError(
            ErrorKind.INVALID_FORMAT,
            file=str(path),
            line=mark.line + 1 if mark is not None else 0,
            column=mark.column if mark is not None else 0,
            detail=getattr(e, "problem", None) or str(e),
        ) from e
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        loc = e.errors()[0]["loc"]
        raise ApidocError(ErrorKind.INVALID_FORMAT, *loc, file=str(path), detail=e.errors()[0]["msg"]) from e
