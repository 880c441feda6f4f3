"""Tests for corpus building and dependency manifest parsing."""

import pytest

from app_analyzer.corpus import build_corpus, summarize_input
from app_analyzer.manifests import (
    index_manifests,
    parse_package_json,
    parse_procfile,
    parse_requirements,
)
from app_analyzer.schema import AnalysisInput, InputFile, InputType

from conftest import make_input


class TestBuildCorpus:
    """Tests for the searchable corpus."""

    def test_text_is_lowercased_concatenation(self):
        corpus = build_corpus(make_input({"a.js": "Const APP = 1"}, description="My React App"))
        assert corpus.text == "my react app const app = 1"

    def test_file_names_keep_order_and_case(self):
        corpus = build_corpus(make_input({"src/App.jsx": "", "package.json": "{}"}))
        assert corpus.file_names == ["src/App.jsx", "package.json"]

    def test_empty_input(self):
        corpus = build_corpus(AnalysisInput())
        assert corpus.text == ""
        assert corpus.file_names == []


class TestSummarizeInput:
    """Tests for input summaries."""

    @pytest.mark.parametrize(
        "analysis_input,expected",
        [
            (AnalysisInput(), InputType.EMPTY),
            (AnalysisInput(description="   "), InputType.EMPTY),
            (AnalysisInput(description="A blog"), InputType.DESCRIPTION),
            (AnalysisInput(files=[InputFile(name="a.py")]), InputType.CODE_UPLOAD),
            (AnalysisInput(description="A blog", files=[InputFile(name="a.py")]), InputType.CODE_UPLOAD),
        ],
        ids=["empty", "blank-description", "description", "files", "both"],
    )
    def test_input_type(self, analysis_input, expected):
        assert summarize_input(analysis_input).input_type == expected

    def test_counts(self):
        summary = summarize_input(make_input({"a.py": "", "b.py": ""}, description="x"))
        assert summary.file_count == 2
        assert summary.has_description is True


class TestParsePackageJson:
    """Tests for npm manifest parsing."""

    def test_collects_all_dependency_sections(self):
        deps, _ = parse_package_json(
            '{"dependencies": {"React": "18"}, "devDependencies": {"vite": "5"},'
            ' "peerDependencies": {"react-dom": "18"}}'
        )
        assert deps == {"react", "vite", "react-dom"}

    def test_collects_script_commands(self):
        _, commands = parse_package_json('{"scripts": {"start": "node server.js", "x": 1}}')
        assert commands == ["node server.js"]

    def test_rejects_invalid_json(self):
        with pytest.raises(ValueError):
            parse_package_json("{ not json")

    def test_rejects_non_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            parse_package_json('["react"]')


class TestParseRequirements:
    """Tests for pip requirements parsing."""

    def test_extracts_names(self):
        content = "Flask==3.0.0\n# comment\n\n-r base.txt\ngunicorn>=21  # server\nrequests[socks]\n"
        assert parse_requirements(content) == {"flask", "gunicorn", "requests"}


class TestParseProcfile:
    """Tests for Procfile parsing."""

    def test_extracts_commands(self):
        assert parse_procfile("web: gunicorn app:app\nworker: celery -A tasks worker\nnoise\n") == [
            "gunicorn app:app",
            "celery -A tasks worker",
        ]


class TestIndexManifests:
    """Tests for manifest indexing across files."""

    def test_merges_manifests_in_subdirectories(self):
        index = index_manifests([
            InputFile(name="client/package.json", content='{"dependencies": {"react": "18"}}'),
            InputFile(name="server/package.json", content='{"dependencies": {"express": "4"}}'),
            InputFile(name="api/requirements.txt", content="fastapi\n"),
            InputFile(name="Procfile", content="web: uvicorn main:app\n"),
        ])
        assert index.dependencies == {"react", "express", "fastapi"}
        assert index.command_text == "uvicorn main:app"
        assert len(index.manifests) == 4
        assert index.found

    def test_malformed_manifest_is_recorded_not_raised(self):
        index = index_manifests([InputFile(name="package.json", content="{ not json")])
        assert index.failed == ["package.json"]
        assert index.dependencies == set()
        assert not index.found

    def test_ignores_other_files(self):
        index = index_manifests([InputFile(name="README.md", content="# hi")])
        assert not index.found
