"""Human-readable rendering of a pod template, in ``kubectl describe`` layout."""

from __future__ import annotations

from typing import Any

from kuberollback.errors import ConversionError
from kuberollback.render.tabwriter import align

_VOLUME_SOURCES: dict[str, tuple[str, str, str]] = {
    # field -> (type label, description, detail key)
    "emptyDir": ("EmptyDir", "a temporary directory that shares a pod's lifetime", "medium"),
    "configMap": ("ConfigMap", "a volume populated by a ConfigMap", "name"),
    "secret": ("Secret", "a volume populated by a Secret", "secretName"),
    "hostPath": ("HostPath", "bare host directory volume", "path"),
    "persistentVolumeClaim": (
        "PersistentVolumeClaim",
        "a reference to a PersistentVolumeClaim in the same namespace",
        "claimName",
    ),
    "projected": ("Projected", "a volume that contains injected data from multiple sources", ""),
    "downwardAPI": ("DownwardAPI", "a volume populated by information about the pod", ""),
}


class _PrefixWriter:
    def __init__(self) -> None:
        self._lines: list[str] = []

    def write(self, level: int, text: str) -> None:
        self._lines.append("  " * level + text)

    def value(self) -> str:
        return align("\n".join(self._lines) + "\n")


def _mapping(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConversionError(f"failed to convert podtemplate: {what} must be a mapping, got {type(value).__name__}")
    return value


def _sequence(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConversionError(f"failed to convert podtemplate: {what} must be a list, got {type(value).__name__}")
    return value


def _write_multiline(w: _PrefixWriter, level: int, title: str, values: dict[str, Any]) -> None:
    if not values:
        w.write(level, f"{title}:\t<none>")
        return
    for index, key in enumerate(sorted(values)):
        entry = f"{key}={values[key]}"
        w.write(level, f"{title}:\t{entry}" if index == 0 else f"\t{entry}")


def _format_ports(ports: list[Any]) -> str:
    rendered = []
    for port in ports:
        port = _mapping(port, "container port")
        rendered.append(f"{port.get('containerPort', '<none>')}/{port.get('protocol', 'TCP')}")
    return ", ".join(rendered)


def _format_env_value(var: dict[str, Any]) -> str:
    if "value" in var:
        return str(var["value"])
    source = _mapping(var.get("valueFrom"), "env valueFrom")
    if "fieldRef" in source:
        return f"({source['fieldRef'].get('apiVersion', 'v1')}:{source['fieldRef'].get('fieldPath', '')})"
    if "resourceFieldRef" in source:
        return f"{source['resourceFieldRef'].get('resource', '')}"
    if "secretKeyRef" in source:
        ref = source["secretKeyRef"]
        return f"<set to the key '{ref.get('key', '')}' in secret '{ref.get('name', '')}'>"
    if "configMapKeyRef" in source:
        ref = source["configMapKeyRef"]
        return f"<set to the key '{ref.get('key', '')}' of config map '{ref.get('name', '')}'>"
    return ""


def _describe_container(w: _PrefixWriter, container: dict[str, Any]) -> None:
    w.write(1, f" {container.get('name', '<unnamed>')}:")
    w.write(2, f"Image:\t{container.get('image', '')}")

    ports = _sequence(container.get("ports"), "container ports")
    if len(ports) > 1:
        w.write(2, f"Ports:\t{_format_ports(ports)}")
    else:
        w.write(2, f"Port:\t{_format_ports(ports) or '<none>'}")

    for field, title in (("command", "Command"), ("args", "Args")):
        values = _sequence(container.get(field), f"container {field}")
        if values:
            w.write(2, f"{title}:")
            for value in values:
                w.write(3, str(value))

    resources = _mapping(container.get("resources"), "container resources")
    for field, title in (("limits", "Limits"), ("requests", "Requests")):
        values = _mapping(resources.get(field), f"resource {field}")
        if values:
            w.write(2, f"{title}:")
            for name in sorted(values):
                w.write(3, f"{name}:\t{values[name]}")

    for field, title in (("livenessProbe", "Liveness"), ("readinessProbe", "Readiness"), ("startupProbe", "Startup")):
        probe = _mapping(container.get(field), f"container {field}")
        if probe:
            w.write(2, f"{title}:\t{_describe_probe(probe)}")

    env = _sequence(container.get("env"), "container env")
    if env:
        w.write(2, "Environment:")
        for var in env:
            var = _mapping(var, "env var")
            w.write(3, f"{var.get('name', '')}:\t{_format_env_value(var)}")
    else:
        w.write(2, "Environment:\t<none>")

    mounts = _sequence(container.get("volumeMounts"), "container volumeMounts")
    if mounts:
        w.write(2, "Mounts:")
        for mount in mounts:
            mount = _mapping(mount, "volume mount")
            flags = "ro" if mount.get("readOnly") else "rw"
            w.write(3, f"{mount.get('mountPath', '')} from {mount.get('name', '')} ({flags})")
    else:
        w.write(2, "Mounts:\t<none>")


def _describe_probe(probe: dict[str, Any]) -> str:
    if "httpGet" in probe:
        get = probe["httpGet"]
        action = f"http-get {get.get('scheme', 'HTTP').lower()}://{get.get('host', '')}:{get.get('port', '')}{get.get('path', '')}"
    elif "tcpSocket" in probe:
        action = f"tcp-socket :{probe['tcpSocket'].get('port', '')}"
    elif "exec" in probe:
        action = f"exec {probe['exec'].get('command', [])}"
    elif "grpc" in probe:
        action = f"grpc <pod>:{probe['grpc'].get('port', '')}"
    else:
        action = "unknown"
    return (
        f"{action} delay={probe.get('initialDelaySeconds', 0)}s timeout={probe.get('timeoutSeconds', 1)}s "
        f"period={probe.get('periodSeconds', 10)}s #success={probe.get('successThreshold', 1)} "
        f"#failure={probe.get('failureThreshold', 3)}"
    )


def _describe_volumes(w: _PrefixWriter, volumes: list[Any]) -> None:
    if not volumes:
        w.write(1, "Volumes:\t<none>")
        return
    w.write(1, "Volumes:")
    for volume in volumes:
        volume = _mapping(volume, "volume")
        w.write(1, f" {volume.get('name', '<unnamed>')}:")
        source_field = next((k for k in volume if k != "name"), "")
        label, description, detail = _VOLUME_SOURCES.get(source_field, (source_field or "<unknown>", "", ""))
        w.write(2, f"Type:\t{label} ({description})" if description else f"Type:\t{label}")
        source = _mapping(volume.get(source_field), f"volume {source_field}")
        if detail:
            w.write(2, f"{detail[0].upper()}{detail[1:]}:\t{source.get(detail, '')}")


def describe_pod_template(template: dict[str, Any] | None) -> str:
    """Render *template* (a serialised PodTemplateSpec).

    Raises:
        ConversionError: the template does not have the PodTemplateSpec shape.
    """
    w = _PrefixWriter()
    w.write(0, "Pod Template:")
    if template is None:
        w.write(1, "<unset>")
        return w.value()

    template = _mapping(template, "template")
    metadata = _mapping(template.get("metadata"), "template metadata")
    spec = _mapping(template.get("spec"), "template spec")

    _write_multiline(w, 1, "Labels", _mapping(metadata.get("labels"), "labels"))
    annotations = _mapping(metadata.get("annotations"), "annotations")
    if annotations:
        _write_multiline(w, 1, "Annotations", annotations)
    if spec.get("serviceAccountName"):
        w.write(1, f"Service Account:\t{spec['serviceAccountName']}")

    init_containers = _sequence(spec.get("initContainers"), "initContainers")
    if init_containers:
        w.write(1, "Init Containers:")
        for container in init_containers:
            _describe_container(w, _mapping(container, "init container"))

    w.write(1, "Containers:")
    for container in _sequence(spec.get("containers"), "containers"):
        _describe_container(w, _mapping(container, "container"))

    _describe_volumes(w, _sequence(spec.get("volumes"), "volumes"))
    return w.value()
