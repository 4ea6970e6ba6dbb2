import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from agentcli.otel.zpages import (
    DEFAULT_ZPAGES_URL,
    ZPagesClient,
    ZPagesError,
    parse_pipelinez,
    parse_pipelinez_collector_html,
    parse_pipelinez_html,
    parse_pipelinez_json,
)

JSON_BODY = json.dumps(
    {
        "pipelines": [
            {
                "name": "traces",
                "receivers": [{"id": "otlp", "status": "StatusOK"}],
                "processors": [{"id": "batch", "status": "StatusOK"}],
                "exporters": [
                    {"id": "elasticsearch", "status": "StatusRecoverableError", "error": "timeout"}
                ],
            }
        ]
    }
).encode()

HTML_ROWS = """
<html><body>
  <table>
    <tr data-pipeline="metrics" data-kind="receiver" data-component="prometheus" data-status="StatusOK" data-error=""></tr>
    <tr data-pipeline="metrics" data-kind="processor" data-component="memory_limiter" data-status="StatusOK" data-error=""></tr>
    <tr data-pipeline="metrics" data-kind="exporter" data-component="debug" data-status="StatusOK" data-error=""></tr>
  </table>
</body></html>
"""


@pytest.fixture
def serve():
    servers = []

    def start(routes):
        class Handler(BaseHTTPRequestHandler):
            def do_GET(self):
                status, content_type, body = routes.get(self.path, (404, "text/plain", b"not found"))
                self.send_response(status)
                self.send_header("Content-Type", content_type)
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, *args):
                pass

        server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_address[1]}"

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


def test_parse_collector_html_escaped_links():
    html = '<html><body><a href="/debug/pipelinez?zpipelinename=metrics&amp;zcomponentname=otlp&amp;zcomponentkind=receiver">receiver</a></body></html>'
    pipelines = parse_pipelinez_collector_html(html)
    assert len(pipelines) == 1
    assert pipelines[0].name == "metrics"
    assert [c.id for c in pipelines[0].receivers] == ["otlp"]


def test_parse_html_falls_back_to_collector_links():
    html = '<html><body><a href="/debug/pipelinez?zpipelinename=traces&zcomponentname=batch&zcomponentkind=processor">processor</a></body></html>'
    pipelines = parse_pipelinez_html(html)
    assert len(pipelines) == 1
    assert [c.id for c in pipelines[0].processors] == ["batch"]


def test_parse_html_unsupported_shape_error():
    with pytest.raises(ZPagesError, match="no pipeline rows found in html"):
        parse_pipelinez_html("<html><body><table><tr><td>plain-html-without-data-attrs</td></tr></table></body></html>")


def test_parse_collector_html_dedupes_and_decodes():
    link = '<a href="?zpipelinename=logs%2Fapp&zcomponentname=otlp&zcomponentkind=Receiver">x</a>'
    other = '<a href="?zpipelinename=logs%2Fapp&zcomponentname=debug&zcomponentkind=exporter">y</a>'
    pipelines = parse_pipelinez_collector_html(link + link + other)
    assert [p.name for p in pipelines] == ["logs/app"]
    assert [(c.id, c.kind) for c in pipelines[0].receivers] == [("otlp", "receiver")]
    assert [c.id for c in pipelines[0].exporters] == ["debug"]


def test_parse_collector_html_skips_bad_escapes():
    html = '<a href="?zpipelinename=logs%zz&zcomponentname=otlp&zcomponentkind=receiver">x</a>'
    assert parse_pipelinez_collector_html(html) == []


def test_parse_html_rows_with_status_and_error():
    html = (
        '<tr data-pipeline="b" data-kind="Exporters" data-component="es" data-status="StatusRecoverableError" data-error=" timeout "></tr>'
        '<tr data-pipeline="a" data-kind="receiver" data-component="otlp" data-status="StatusOK" data-error=""></tr>'
    )
    pipelines = parse_pipelinez_html(html)
    assert [p.name for p in pipelines] == ["a", "b"]
    exporter = pipelines[1].exporters[0]
    assert exporter.id == "es"
    assert exporter.kind == "exporters"
    assert exporter.status == "StatusRecoverableError"
    assert exporter.error == "timeout"


def test_parse_json_defaults_and_sorting():
    body = json.dumps(
        {
            "pipelines": [
                {"name": "traces", "receivers": [{"id": "otlp"}, {"id": "  "}]},
                {"pipeline_id": "logs", "exporters": [{"id": "debug", "kind": "custom"}]},
                {"name": ""},
            ]
        }
    )
    pipelines = parse_pipelinez_json(body)
    assert [p.name for p in pipelines] == ["logs", "traces"]
    assert [(c.id, c.kind) for c in pipelines[1].receivers] == [("otlp", "receiver")]
    assert pipelines[0].exporters[0].kind == "custom"


def test_parse_json_without_pipelines_fails():
    with pytest.raises(ZPagesError, match="no pipelines found"):
        parse_pipelinez_json(b'{"pipelines": []}')


def test_parse_json_invalid_fails():
    with pytest.raises(ZPagesError):
        parse_pipelinez(b"{not json", "application/json")


def test_parse_empty_body_fails():
    with pytest.raises(ZPagesError, match="empty response"):
        parse_pipelinez(b"   \n", "text/html")


def test_parse_dispatches_on_content():
    pipelines = parse_pipelinez(JSON_BODY, "text/plain")
    assert [p.name for p in pipelines] == ["traces"]
    pipelines = parse_pipelinez(HTML_ROWS.encode(), "text/html")
    assert [p.name for p in pipelines] == ["metrics"]


def test_client_default_and_trimmed_base_url():
    assert ZPagesClient().base_url == DEFAULT_ZPAGES_URL
    assert ZPagesClient("http://localhost:55680//").base_url == "http://localhost:55680"


def test_client_json_topology(serve):
    url = serve(
        {
            "/debug/pipelinez": (200, "application/json", JSON_BODY),
            "/debug/tracez": (200, "text/plain", b"ok"),
        }
    )
    topology = ZPagesClient(url).get_pipeline_topology()
    assert topology.tracez_reachable
    assert len(topology.pipelines) == 1
    p = topology.pipelines[0]
    assert p.name == "traces"
    assert [c.id for c in p.receivers] == ["otlp"]
    assert [c.id for c in p.processors] == ["batch"]
    assert [c.id for c in p.exporters] == ["elasticsearch"]
    assert p.exporters[0].status == "StatusRecoverableError"
    assert p.exporters[0].error == "timeout"


def test_client_html_topology_with_tracez_down(serve):
    url = serve(
        {
            "/debug/pipelinez": (200, "text/html; charset=utf-8", HTML_ROWS.encode()),
            "/debug/tracez": (503, "text/plain", b""),
        }
    )
    topology = ZPagesClient(url).get_pipeline_topology()
    assert not topology.tracez_reachable
    p = topology.pipelines[0]
    assert p.name == "metrics"
    assert [c.id for c in p.receivers] == ["prometheus"]
    assert [c.id for c in p.processors] == ["memory_limiter"]
    assert [c.id for c in p.exporters] == ["debug"]


def test_client_non_ok_status_fails(serve):
    url = serve({"/debug/pipelinez": (500, "text/plain", b"boom")})
    with pytest.raises(ZPagesError, match="request zpages pipelinez: /debug/pipelinez returned 500"):
        ZPagesClient(url).get_pipeline_topology()


def test_client_unparseable_body_fails(serve):
    url = serve({"/debug/pipelinez": (200, "text/html", b"<html>nothing</html>")})
    with pytest.raises(ZPagesError, match="parse zpages pipelinez"):
        ZPagesClient(url).get_pipeline_topology()


def test_client_connection_error():
    with pytest.raises(ZPagesError, match="request zpages pipelinez"):
        ZPagesClient("http://127.0.0.1:1", timeout=1).get_pipeline_topology()