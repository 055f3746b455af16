"""Tests for commitgroup.grouping.parser module."""

import json
import random
from pathlib import Path

import pytest

from commitgroup.errors import ResponseParseError
from commitgroup.grouping.parser import (
    extract_json_object,
    fallback_response,
    parse_grouping_response,
)
from commitgroup.grouping.policy import fallback_message
from commitgroup.models import ChangeRecord
from commitgroup.sanitizer import sanitize_change_record


def _sanitize(records, base_dir=Path("/repo")):
    return [sanitize_change_record(record, base_dir) for record in records]


def _response(*groups):
    return json.dumps({"groups": list(groups)})


class TestExtractJsonObject:
    """Tests for extract_json_object function."""

    def test_plain_object(self):
        """Test a bare JSON object."""
        assert extract_json_object('{"a": 1}') == '{"a": 1}'

    def test_surrounding_prose_and_fences(self):
        """Test that text and markdown fences around the object are ignored."""
        raw = 'Here you go:\n```json\n{"groups": []}\n```\nDone.'
        assert extract_json_object(raw) == '{"groups": []}'

    def test_nested_objects(self):
        """Test that nested braces are balanced."""
        raw = 'x {"a": {"b": {"c": 1}}, "d": 2} y {"e": 3}'
        assert extract_json_object(raw) == '{"a": {"b": {"c": 1}}, "d": 2}'

    def test_braces_inside_strings(self):
        """Test that braces in string values do not affect balancing."""
        raw = '{"message": "Fixed } and { handling", "x": "\\"}"}'
        assert json.loads(extract_json_object(raw))["x"] == '"}'

    def test_skips_unbalanced_prefix(self):
        """Test that an unclosed brace is skipped for a later object."""
        raw = 'start { not closed {"ok": true}'
        assert extract_json_object(raw) == '{"ok": true}'

    def test_no_object_raises(self):
        """Test that text without an object is a parse error."""
        with pytest.raises(ResponseParseError):
            extract_json_object("I could not group these files.")


class TestParseGroupingResponse:
    """Tests for parse_grouping_response function."""

    def test_valid_groups(self, sample_records):
        """Test a well-formed response."""
        raw = _response(
            {
                "files": ["src/auth.py", "src/users.py"],
                "message": "Implemented token based login for users",
                "description": "Auth flow",
                "confidence": 0.92,
            },
            {"files": ["docs/guide.md"], "message": "Added user guide for the new login"},
        )

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert [g.files for g in result.groups] == [["src/auth.py", "src/users.py"], ["docs/guide.md"]]
        assert result.groups[0].confidence == 0.92
        assert result.groups[0].description == "Auth flow"
        assert result.groups[1].confidence == 0.7

    def test_no_json_gives_singleton_fallbacks(self, sample_records):
        """Test that output without JSON yields one fallback group per file."""
        result = parse_grouping_response(
            "Sorry, I cannot help with that.", sample_records, _sanitize(sample_records)
        )

        assert len(result.groups) == 3
        for group, record in zip(result.groups, sample_records):
            assert group.files == [record.file]
            assert group.message == fallback_message(record)
            assert group.confidence == 0.6

    def test_missing_groups_key_is_parse_failure(self, sample_records):
        """Test that a JSON object without groups falls back."""
        result = parse_grouping_response('{"commits": []}', sample_records, _sanitize(sample_records))
        assert len(result.groups) == 3
        assert all(g.confidence == 0.6 for g in result.groups)

    def test_groups_wrong_type_is_parse_failure(self, sample_records):
        """Test that a non-list groups value falls back."""
        result = parse_grouping_response('{"groups": "all"}', sample_records, _sanitize(sample_records))
        assert len(result.groups) == 3

    def test_parse_failure_is_logged(self, sample_records, caplog):
        """Test that parse failures are logged as warnings."""
        with caplog.at_level("WARNING", logger="commitgroup.grouping.parser"):
            parse_grouping_response("nothing", sample_records, _sanitize(sample_records))
        assert "Unusable model response" in caplog.text

    def test_duplicate_claims_first_wins(self, sample_records):
        """Test that a file claimed twice stays in the first group."""
        raw = _response(
            {"files": ["src/auth.py", "src/users.py"], "message": "Updated authentication and user modules"},
            {"files": ["src/users.py", "docs/guide.md"], "message": "Documented the user module changes"},
        )

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert result.groups[0].files == ["src/auth.py", "src/users.py"]
        assert result.groups[1].files == ["docs/guide.md"]

    def test_unknown_files_dropped(self, sample_records):
        """Test that files the model invented are ignored."""
        raw = _response(
            {"files": ["src/ghost.py"], "message": "Added a file that does not exist"},
            {"files": ["src/auth.py", "README.md"], "message": "Implemented login for registered users"},
        )

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert result.groups[0].files == ["src/auth.py"]
        assert "src/ghost.py" not in result.files
        assert "README.md" not in result.files

    def test_non_string_file_entries_dropped(self, sample_records):
        """Test that a bad entry does not discard the rest of its group."""
        raw = _response(
            {
                "files": ["src/auth.py", 42, None, {"path": "x"}, "src/users.py"],
                "message": "Implemented login for registered users",
                "confidence": 0.9,
            }
        )

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert result.groups[0].files == ["src/auth.py", "src/users.py"]
        assert result.groups[0].confidence == 0.9
        assert result.files == ["src/auth.py", "src/users.py", "docs/guide.md"]

    @pytest.mark.parametrize("description, expected", [("  Adds login()  \n", "Adds login()"), ("   ", None), (7, None)])
    def test_description_trimmed(self, sample_records, description, expected):
        """Test that descriptions are stripped and blank or non-text ones dropped."""
        raw = _response(
            {
                "files": ["src/auth.py"],
                "message": "Implemented login for registered users",
                "description": description,
            }
        )

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert result.groups[0].description == expected

    def test_unclaimed_files_become_singletons(self, sample_records):
        """Test that files missing from the response are appended."""
        raw = _response({"files": ["src/auth.py"], "message": "Implemented login for registered users"})

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert result.files == ["src/auth.py", "src/users.py", "docs/guide.md"]
        assert result.groups[1].message == fallback_message(sample_records[1])
        assert result.groups[1].confidence == 0.6

    def test_rejected_message_uses_first_file_fallback(self, sample_records):
        """Test that a rejected message is replaced, keeping the group."""
        raw = _response({"files": ["docs/guide.md", "src/auth.py"], "message": "fix:"})

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert result.groups[0].files == ["docs/guide.md", "src/auth.py"]
        assert result.groups[0].message == fallback_message(sample_records[2])

    def test_scoped_message_is_corrected(self, sample_records):
        """Test that a conventional-commit scope is stripped."""
        raw = _response({"files": ["src/auth.py"], "message": "feat(auth): Added OAuth2 support for login"})

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert result.groups[0].message == "Added OAuth2 support for login"

    @pytest.mark.parametrize("confidence, expected", [(1.7, 1.0), (-0.2, 0.0), ("high", 0.7), (True, 0.7)])
    def test_confidence_normalized(self, sample_records, confidence, expected):
        """Test that confidence is clamped, and non-numbers use the default."""
        raw = _response(
            {"files": ["src/auth.py"], "message": "Implemented login for registered users", "confidence": confidence}
        )

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert result.groups[0].confidence == expected

    def test_malformed_group_skipped(self, sample_records):
        """Test that groups failing validation are skipped, files recovered."""
        raw = _response(
            {"files": "src/auth.py", "message": "Files is not a list here at all"},
            {"message": "No files key"},
            "not even an object",
            {"files": ["src/users.py"], "message": ""},
        )

        result = parse_grouping_response(raw, sample_records, _sanitize(sample_records))

        assert len(result.groups) == 3
        assert all(len(g.files) == 1 for g in result.groups)
        assert all(g.confidence == 0.6 for g in result.groups)

    def test_maps_sanitized_names_to_original_paths(self, temp_dir):
        """Test that names shown to the model resolve to original paths."""
        absolute = str(temp_dir / "pkg" / "mod.py")
        records = [ChangeRecord(file=absolute, additions=3, deletions=1, changes="+x")]
        sanitized = _sanitize(records, base_dir=temp_dir)
        assert sanitized[0].file == "pkg/mod.py"

        raw = _response({"files": ["pkg/mod.py"], "message": "Updated the module entry point logic"})
        result = parse_grouping_response(raw, records, sanitized)

        assert result.groups[0].files == [absolute]
        assert result.groups[0].confidence == 0.7

    def test_misaligned_inputs_rejected(self, sample_records):
        """Test that records and sanitized records must line up."""
        with pytest.raises(ValueError):
            parse_grouping_response("{}", sample_records, _sanitize(sample_records[:1]))


class TestCoverageProperty:
    """Every input file appears in exactly one output group."""

    @pytest.mark.parametrize("seed", range(25))
    def test_random_responses_cover_input(self, seed):
        """Test coverage for randomly generated inputs and responses."""
        rng = random.Random(seed)
        count = rng.randint(1, 12)
        records = [
            ChangeRecord(
                file=f"dir{rng.randint(0, 3)}/file_{i}.py",
                additions=rng.randint(0, 50),
                deletions=rng.randint(0, 50),
                changes="+" * rng.randint(0, 20),
                is_new=rng.random() < 0.2,
            )
            for i in range(count)
        ]
        names = [r.file for r in records] + ["unknown.py", "other/ghost.js"]

        groups = []
        for _ in range(rng.randint(0, 6)):
            groups.append(
                {
                    "files": rng.sample(names, rng.randint(0, min(4, len(names)))),
                    "message": rng.choice(
                        ["Updated several modules with fixes", "fix:", "chore(deps): bump", ""]
                    ),
                    "confidence": rng.choice([0.5, 2, None, "x"]),
                }
            )
        raw = rng.choice([_response(*groups), "garbage " + _response(*groups)[:-1], "no json"])

        result = parse_grouping_response(raw, records, _sanitize(records))

        output_files = result.files
        assert sorted(output_files) == sorted(r.file for r in records)
        assert len(output_files) == len(set(output_files))
        assert all(0.0 <= g.confidence <= 1.0 for g in result.groups)
        assert all(g.message for g in result.groups)


class TestFallbackResponse:
    """Tests for fallback_response function."""

    def test_one_group_per_record(self, sample_records):
        """Test that every record becomes its own group."""
        result = fallback_response(sample_records)
        assert [g.files for g in result.groups] == [[r.file] for r in sample_records]
        assert not result.from_cache
