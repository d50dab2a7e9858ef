"""Tests for the command-line interface."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest
from click.testing import CliRunner

from bayes_classifier.cli import main
from bayes_classifier.source import FrequencyTable


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("BAYES_LOG_LEVEL", "BAYES_PRECISION", "BAYES_SMOOTHING_WEIGHT",
                 "BAYES_ASSUMED_PROBABILITY", "BAYES_MODEL_PATH"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def model_path(runner, observations_file, tmp_path):
    path = tmp_path / "model.json"
    result = runner.invoke(main, ["train", str(observations_file), "-o", str(path)])
    assert result.exit_code == 0, result.output
    return path


class TestTrain:

    def test_train_writes_model(self, model_path):
        table = FrequencyTable.load(model_path)
        assert table.known_categories() == {"spam", "ham"}
        assert table.category_count("spam") == 2
        # Text observations are tokenized with stopwords removed
        assert table.feature_count("prize", "spam") == 1
        assert table.feature_count("the", "ham") == 0

    def test_train_reports_counts(self, runner, observations_file, tmp_path):
        result = runner.invoke(
            main, ["train", str(observations_file), "-o", str(tmp_path / "m.json")]
        )
        assert result.exit_code == 0
        assert "4" in result.output
        assert "2" in result.output

    def test_train_keep_stopwords_and_ngrams(self, runner, observations_file, tmp_path):
        path = tmp_path / "m.json"
        result = runner.invoke(main, [
            "train", str(observations_file), "-o", str(path),
            "--keep-stopwords", "--ngram", "2",
        ])
        assert result.exit_code == 0
        table = FrequencyTable.load(path)
        assert table.feature_count("the", "ham") == 1
        assert table.feature_count("free_prize", "spam") == 1

    def test_train_uses_settings_smoothing(self, runner, observations_file, tmp_path,
                                           monkeypatch):
        monkeypatch.setenv("BAYES_ASSUMED_PROBABILITY", "0.2")
        path = tmp_path / "m.json"
        assert runner.invoke(main, ["train", str(observations_file), "-o", str(path)]).exit_code == 0
        assert FrequencyTable.load(path).assumed_probability == Decimal("0.2")

    def test_train_model_path_from_env(self, runner, observations_file, tmp_path,
                                       monkeypatch):
        path = tmp_path / "env-model.json"
        monkeypatch.setenv("BAYES_MODEL_PATH", str(path))
        result = runner.invoke(main, ["train", str(observations_file)])
        assert result.exit_code == 0
        assert path.exists()

    def test_train_without_model_path_is_usage_error(self, runner, observations_file):
        result = runner.invoke(main, ["train", str(observations_file)])
        assert result.exit_code == 2

    def test_train_invalid_json(self, runner, tmp_path):
        data = tmp_path / "bad.jsonl"
        data.write_text('{"category": "spam", "features": ["a"]}\n{oops\n', encoding="utf-8")
        result = runner.invoke(main, ["train", str(data), "-o", str(tmp_path / "m.json")])
        assert result.exit_code == 1
        assert "bad.jsonl:2" in result.output

    def test_train_missing_category(self, runner, tmp_path):
        data = tmp_path / "bad.jsonl"
        data.write_text('{"features": ["a"]}\n', encoding="utf-8")
        result = runner.invoke(main, ["train", str(data), "-o", str(tmp_path / "m.json")])
        assert result.exit_code == 1
        assert "category" in result.output

    def test_train_missing_features_and_text(self, runner, tmp_path):
        data = tmp_path / "bad.jsonl"
        data.write_text('{"category": "spam"}\n', encoding="utf-8")
        result = runner.invoke(main, ["train", str(data), "-o", str(tmp_path / "m.json")])
        assert result.exit_code == 1


class TestClassify:

    def test_classify_features_json(self, runner, model_path):
        result = runner.invoke(main, [
            "classify", "-m", str(model_path), "--features", "free", "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["category"] == "spam"
        assert data["featureset"] == ["free"]

    def test_classify_text_rich(self, runner, model_path):
        result = runner.invoke(main, ["classify", "-m", str(model_path), "Lunch tomorrow?"])
        assert result.exit_code == 0, result.output
        assert "ham" in result.output

    def test_classify_detailed_json(self, runner, model_path):
        result = runner.invoke(main, [
            "classify", "-m", str(model_path), "-f", "free,prize", "--detailed", "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [entry["category"] for entry in data] == ["spam", "ham"]

    def test_classify_detailed_rich(self, runner, model_path):
        result = runner.invoke(main, [
            "classify", "-m", str(model_path), "-f", "meeting", "--detailed",
        ])
        assert result.exit_code == 0, result.output
        assert "spam" in result.output
        assert "ham" in result.output

    def test_classify_requires_input(self, runner, model_path):
        result = runner.invoke(main, ["classify", "-m", str(model_path)])
        assert result.exit_code == 2

    def test_classify_empty_model(self, runner, tmp_path):
        path = tmp_path / "empty.json"
        FrequencyTable().save(path)

        result = runner.invoke(main, ["classify", "-m", str(path), "-f", "free"])
        assert result.exit_code == 0
        assert "No classification" in result.output

        result = runner.invoke(main, ["classify", "-m", str(path), "-f", "free", "-o", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output) is None

    def test_classify_undefined_prior(self, runner, tmp_path):
        path = tmp_path / "zero.json"
        path.write_text(json.dumps({
            "version": "1.0",
            "weight": "1",
            "assumed_probability": "0.5",
            "categories": [{"category": "spam", "count": 0, "features": []}],
        }), encoding="utf-8")
        result = runner.invoke(main, ["classify", "-m", str(path), "-f", "free"])
        assert result.exit_code == 1
        assert "Error" in result.output
        assert "undefined" in result.output

    def test_classify_missing_model(self, runner, tmp_path):
        result = runner.invoke(main, [
            "classify", "-m", str(tmp_path / "nope.json"), "-f", "free",
        ])
        assert result.exit_code == 1
        assert "could not load model" in result.output

    @pytest.mark.parametrize("overrides", [
        {"weight": "heavy"},
        {"weight": "NaN"},
        {"categories": [{"category": "spam", "count": 1, "features": [5]}]},
        {"categories": [{"category": "spam", "features": []}]},
    ])
    def test_classify_malformed_model(self, runner, tmp_path, overrides):
        data = {
            "version": "1.0",
            "weight": "1",
            "assumed_probability": "0.5",
            "categories": [{"category": "spam", "count": 1, "features": [["free", 1]]}],
        }
        data.update(overrides)
        path = tmp_path / "broken.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        result = runner.invoke(main, ["classify", "-m", str(path), "-f", "free"])
        assert result.exit_code == 1
        assert "could not load model" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_classify_category_with_markup(self, runner, tmp_path):
        path = tmp_path / "markup.json"
        table = FrequencyTable()
        table.learn("[/]odd", ["free"])
        table.learn("[bold]ham", ["lunch"])
        table.save(path)

        result = runner.invoke(main, ["classify", "-m", str(path), "-f", "free"])
        assert result.exit_code == 0, result.output
        assert "[/]odd" in result.output

        result = runner.invoke(main, ["classify", "-m", str(path), "-f", "free", "--detailed"])
        assert result.exit_code == 0, result.output
        assert "[bold]ham" in result.output


class TestInfo:

    def test_info_json(self, runner, model_path):
        result = runner.invoke(main, ["info", "-m", str(model_path), "-o", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["categories_total"] == 4
        assert {c["category"]: c["prior"] for c in data["categories"]} == {
            "ham": "0.50",
            "spam": "0.50",
        }

    def test_info_rich(self, runner, model_path):
        result = runner.invoke(main, ["info", "-m", str(model_path)])
        assert result.exit_code == 0, result.output
        assert "spam" in result.output
        assert "0.50" in result.output


class TestGlobalOptions:

    def test_invalid_environment_exits(self, runner, model_path, monkeypatch):
        monkeypatch.setenv("BAYES_PRECISION", "lots")
        result = runner.invoke(main, ["info", "-m", str(model_path)])
        assert result.exit_code == 1
        assert "BAYES_PRECISION" in result.output

    def test_log_level_option(self, runner, model_path):
        result = runner.invoke(main, ["--log-level", "debug", "info", "-m", str(model_path)])
        assert result.exit_code == 0, result.output
