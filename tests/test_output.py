# ABOUTME: Unit tests for response rendering
# ABOUTME: Covers filter/exclude key selection and the text output format

"""Tests for stackshell.output."""

from stackshell.output import render_response, select_keys

RESPONSE = {
    "count": 2,
    "volume": [
        {"id": "v1", "name": "root", "State": "Ready"},
        {"id": "v2", "name": "data", "State": "Allocated"},
    ],
}


class TestSelectKeys:
    def test_no_hints_returns_response(self):
        assert select_keys(RESPONSE) is RESPONSE

    def test_filter_is_case_insensitive(self):
        result = select_keys(RESPONSE, filter_keys=["ID", "state"])

        assert result["volume"] == [{"id": "v1", "State": "Ready"}, {"id": "v2", "State": "Allocated"}]
        assert result["count"] == 2

    def test_exclude(self):
        result = select_keys(RESPONSE, exclude_keys=["name"])

        assert result["volume"][0] == {"id": "v1", "State": "Ready"}

    def test_nested_record(self):
        result = select_keys({"job": {"jobid": "j1", "cmd": "x"}}, filter_keys=["jobid"])

        assert result == {"job": {"jobid": "j1"}}


class TestRenderResponse:
    def test_json(self, console, output):
        render_response(console, RESPONSE)

        assert '"name": "root"' in output()

    def test_text_table(self, console, output):
        render_response(console, RESPONSE, output="text")

        text = output()
        assert "count = 2" in text
        assert "Allocated" in text
        assert "volume" in text

    def test_text_key_values(self, console, output):
        render_response(console, {"getuploadparams": {"postURL": "https://u", "expires": "soon"}}, output="text")

        assert "postURL = https://u" in output()
        assert "expires = soon" in output()
