# agentcli

`agentcli` is a small library, using only the standard library, for reading
the running state of telemetry agents and describing it with one shared
pipeline model.

## The pipeline model

`agentcli.model` holds the shared types:

- `HealthStatus`: `HEALTHY`, `DEGRADED`, `ERROR`, `DISABLED`, `UNKNOWN`
  (string values `"healthy"`, `"degraded"`, ...).
- `Node`: `id`, `label`, `kind`, `status` and optional `NodeMetrics`
  (`events_in_per_sec`, `events_out_per_sec`, `error_count`, `drop_count`).
- `Edge`: `source` and `target` node ids.
- `Pipeline`: `name`, `nodes`, `edges`, `updated_at` (UTC) and a string
  `metadata` mapping. `Pipeline.node(node_id)` finds a node by id.
- `Agent`: the abstract contract with `agent_id`, `agent_type`, `status()`
  and `health()`.

Every model type has `to_dict()`; an edge serialises as
`{"from": ..., "to": ...}` and `updated_at` as an ISO 8601 string, so a
pipeline can be passed straight to `json.dumps`.

## Collector topology from zpages

```python
from agentcli.otel.zpages import ZPagesClient

client = ZPagesClient("http://localhost:55679", 5.0)
topology = client.get_pipeline_topology()

print(topology.tracez_reachable)
for pipeline in topology.pipelines:
    print(pipeline.name, [c.id for c in pipeline.receivers])
```

`get_pipeline_topology()` reads `/debug/pipelinez` and probes
`/debug/tracez`. The body is read as JSON when the content type says so or it
starts with `{` or `[`; otherwise as HTML, either table rows carrying
`data-pipeline`, `data-kind`, `data-component`, `data-status` and
`data-error` attributes, or the collector's own page with its
`zpipelinename=...&zcomponentname=...&zcomponentkind=...` links. Pipelines
come back sorted by name. The parsers can be used on their own:

```python
from agentcli.otel.zpages import parse_pipelinez, parse_pipelinez_collector_html

pipelines = parse_pipelinez(body, "text/html")
```

A page that cannot be fetched, is empty, or holds no pipelines raises
`ZPagesError`.

`agentcli.edot.zpages` offers the same client and parsers for EDOT
collectors.

## Friendly component names

```python
from agentcli.otel.registry import lookup_component_descriptor

descriptor = lookup_component_descriptor("receiver", "otlp", "traces")
print(descriptor.name, descriptor.icon, descriptor.known)  # OTLP receiver receiver True
```

The OTLP, Prometheus and batch components and the debug exporter are known,
also under suffixed ids such as `otlp/2`. Any other component falls back to
its raw name with the `"generic"` icon and a category taken from the
pipeline name (`OTelPipelineType.TRACE`, `METRICS`, `LOGS` or `UNKNOWN`).

## Elastic components in EDOT pipelines

`agentcli.edot.labels` provides:

- `is_elastic_component(name)`: true when the name contains `elastic` or
  `ecsformatprocessor`, ignoring case.
- `elastic_node_label(component_name, kind, pipeline_name, descriptor)`: the
  descriptor's name (or the component name), with ` [Elastic]` appended for
  Elastic components.
- `elastic_metadata(nodes)`: `{"elastic_components": "<sorted ids>"}`, or an
  empty dict when there are none.
- `convert_topology(topology)`: an independent copy of a `PipelineTopology`.

## Collector health

```python
from agentcli.otel.health import HealthChecker

checker = HealthChecker("http://localhost:13133/", {}, 5.0)
print(checker.health())
```

Without an explicit URL, the `endpoint` of the `health_check` entry in
`extensions` (a mapping, or an object with a `raw` mapping) is used, and
failing that `http://localhost:13133/`. Endpoints without a scheme get
`http://`, bind-all hosts (`0.0.0.0`, `::`, empty) become `localhost`, and an
empty path becomes `/`. A reply other than 200 gives `HealthStatus.ERROR`;
a JSON `status` of `Server available`, `StatusOK` or `ok` gives `HEALTHY`,
`Server not available`, `StatusFatalError` or `StatusPermanentError` gives
`ERROR`, anything else `UNKNOWN`. An unreachable endpoint or an undecodable
reply raises `HealthCheckError`.

The same module has `health_url`, `normalize_health_endpoint`,
`is_bind_all_host`, `health_rank` (severity, higher is worse) and
`dedupe_edges`.

## Elastic Agent

```python
from agentcli.elasticagent.client import Client

client = Client("http://localhost:6791", 5.0)
status = client.get_status()
print(status.name, status.status.overall)
for component in client.get_components():
    print(component.id, component.status.overall)
```

`get_status()` reads `/api/status`. When that answers 404 it reads `/stats`
instead and reports the beat's ephemeral id and name with an overall status
of `HEALTHY`. Other failures raise `ElasticAgentError`.

`Adapter` combines a configuration with the runtime status into a
`Pipeline`:

```python
from agentcli.elasticagent.adapter import (
    Adapter,
    ElasticAgentConfig,
    ElasticInput,
    ElasticOutput,
)
from agentcli.elasticagent.client import Client

config = ElasticAgentConfig(
    inputs=[ElasticInput(id="system-logs", type="filestream", use_output="default")],
    outputs={"default": ElasticOutput(type="elasticsearch")},
)
adapter = Adapter(config, Client("http://localhost:6791", 5.0))
pipeline = adapter.status()
print(pipeline.to_dict())
print(adapter.health())
```

Outputs become `output.<name>` nodes and inputs `input.<id>` nodes, with an
edge from each input to the output it uses; disabled inputs are marked
`DISABLED`. Inputs naming an output that does not exist are listed under
`config_warnings` in the metadata. Runtime states are mapped with
`map_runtime_status` (`HEALTHY`/`RUNNING`/`OK`, `DEGRADED`/`WARNING`/`WARN`,
`FAILED`/`ERROR`, `DISABLED`/`STOPPED`).

Input metrics are filled in only when a metrics source is passed as the
third argument: any object with `collect_beat_stats(endpoint)` returning a
`BeatSnapshot` or `None`. The endpoint for each input comes from
`metrics_endpoint_by_input`, by default `default_metrics_endpoint_by_input`,
which gives `http://localhost:5066/stats`.

## What the package does not do

- It has no command-line program; it is used from Python code.
- It does not read agent or collector configuration files: an
  `ElasticAgentConfig` is built in code, and collector extensions are passed
  to `HealthChecker` as a mapping.
- It does not build a pipeline graph for OpenTelemetry or EDOT collectors;
  it supplies the zpages topology, component names, Elastic labelling and
  health checking from which such a graph can be made.
- It does not scrape Prometheus or beat stats endpoints itself.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.