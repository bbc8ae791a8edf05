import logging

from pactflow.middleware import RequestContextLogFilter, actor_role_var, request_id_var


def _record() -> logging.LogRecord:
    return logging.LogRecord("pactflow.test", logging.INFO, __file__, 1, "hello", None, None)


class TestRequestContextLogFilter:
    def test_defaults_outside_a_request(self):
        record = _record()

        assert RequestContextLogFilter().filter(record) is True
        assert record.request_id == "-"
        assert record.actor_role == "-"

    def test_injects_current_request_context(self):
        rid_token = request_id_var.set("req-42")
        role_token = actor_role_var.set("legal")
        try:
            record = _record()
            RequestContextLogFilter().filter(record)
        finally:
            request_id_var.reset(rid_token)
            actor_role_var.reset(role_token)

        assert record.request_id == "req-42"
        assert record.actor_role == "legal"

    def test_format_includes_context(self):
        formatter = logging.Formatter("[%(request_id)s] [%(actor_role)s] %(message)s")
        record = _record()
        RequestContextLogFilter().filter(record)

        assert formatter.format(record) == "[-] [-] hello"
