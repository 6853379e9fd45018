"""Tests for the question file loader."""

from __future__ import annotations

import pytest
import yaml

from pixellearn.engine.content_loader import (
    ContentError,
    bundled_content_dir,
    discover_question_files,
    load_question_file,
)
from pixellearn.engine.questions import Subject


def _write(path, data):
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


def test_discover_only_question_files(content_dir):
    names = [p.name for p in discover_question_files(content_dir)]
    assert names == ["grammar.yaml", "spelling.yml"]


def test_discover_missing_dir(tmp_path):
    assert discover_question_files(tmp_path / "nope") == []
    assert discover_question_files(None) == []


def test_load_file(content_dir):
    qfile = load_question_file(content_dir / "grammar.yaml")
    assert qfile.subject is Subject.GRAMMAR
    # two single-level entries plus a 3-level range
    assert len(qfile.questions) == 5
    noun = qfile.for_level(3)[0]
    assert noun.correct_answer == "cat"
    assert noun.explanation == "'Cat' names a thing"


def test_level_range_expands_with_unique_ids(content_dir):
    qfile = load_question_file(content_dir / "grammar.yaml")
    ranged = [q for q in qfile.questions if q.text == "Plural of mouse?"]
    assert [q.level for q in ranged] == [4, 5, 6]
    assert len({q.id for q in ranged}) == 3


def test_subject_display_name_accepted(content_dir):
    assert load_question_file(content_dir / "spelling.yml").subject is Subject.SPELLING


def test_bad_answer_index(tmp_path):
    path = _write(tmp_path / "bad.yaml", {
        "subject": "math",
        "questions": [{"level": 1, "text": "?", "options": ["a", "b"], "answer": 5}],
    })
    with pytest.raises(ContentError, match="out of range"):
        load_question_file(path)


def test_too_few_options(tmp_path):
    path = _write(tmp_path / "bad.yaml", {
        "subject": "math",
        "questions": [{"level": 1, "text": "?", "options": ["a"], "answer": 0}],
    })
    with pytest.raises(ContentError, match="at least 2"):
        load_question_file(path)


def test_missing_level(tmp_path):
    path = _write(tmp_path / "bad.yaml", {
        "subject": "math",
        "questions": [{"text": "?", "options": ["a", "b"], "answer": 0}],
    })
    with pytest.raises(ContentError, match="missing 'level'"):
        load_question_file(path)


def test_unknown_subject(tmp_path):
    path = _write(tmp_path / "bad.yaml", {"subject": "history", "questions": []})
    with pytest.raises(ContentError, match="Unknown subject"):
        load_question_file(path)


def test_not_a_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ContentError):
        load_question_file(path)


def test_bundled_files_parse():
    files = [load_question_file(p) for p in discover_question_files(bundled_content_dir())]
    assert {f.subject for f in files} == {Subject.GRAMMAR, Subject.SPELLING}
