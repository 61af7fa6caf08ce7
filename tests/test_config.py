import json

import pytest

from ng2react.config import TranspilerConfig
from ng2react.errors import ConfigurationError


class TestTranspilerConfig:
    def test_defaults(self):
        config = TranspilerConfig()
        assert config.use_typescript
        assert not config.generate_tests
        assert config.react_major == 18

    def test_camel_case_options(self):
        config = TranspilerConfig.from_dict({
            "sourceDir": "src",
            "outputDir": "out",
            "useTypeScript": False,
            "reactVersion": "^17.0.2",
            "maxWorkers": 2,
        })
        assert config.source_dir == "src"
        assert config.output_dir == "out"
        assert not config.use_typescript
        assert config.react_major == 17
        assert config.max_workers == 2

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError, match="colour"):
            TranspilerConfig.from_dict({"colour": "blue"})

    def test_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"generateTests": True, "dryRun": True}))
        config = TranspilerConfig.from_file(str(path))
        assert config.generate_tests
        assert config.dry_run

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            TranspilerConfig.from_file(str(path))

    def test_merged_ignores_missing_overrides(self):
        config = TranspilerConfig(source_dir="src", react_version="17").merged(
            {"source_dir": None, "react_version": "18.2"}
        )
        assert config.source_dir == "src"
        assert config.react_major == 18

    def test_validate_missing_source_directory(self, tmp_path):
        config = TranspilerConfig(source_dir=str(tmp_path / "missing"), output_dir=str(tmp_path))
        with pytest.raises(ConfigurationError, match="does not exist"):
            config.validate()

    def test_validate_requires_output_unless_dry_run(self, tmp_path):
        with pytest.raises(ConfigurationError, match="output directory"):
            TranspilerConfig(source_dir=str(tmp_path)).validate()
        TranspilerConfig(source_dir=str(tmp_path), dry_run=True).validate()

    @pytest.mark.parametrize("version", ["latest", "", "18.x.y"])
    def test_unparsable_react_version(self, tmp_path, version):
        config = TranspilerConfig(source_dir=str(tmp_path), dry_run=True, react_version=version)
        with pytest.raises(ConfigurationError):
            config.validate()

    def test_invalid_worker_count(self, tmp_path):
        config = TranspilerConfig(source_dir=str(tmp_path), dry_run=True, max_workers=0)
        with pytest.raises(ConfigurationError, match="maxWorkers"):
            config.validate()
