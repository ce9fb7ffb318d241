"""Server-side HTML rendering of a snapshot.

Pure functions: the page shows the snapshot's own ``overall_health`` and
``alerts`` and never re-derives them.
"""

from __future__ import annotations

from html import escape

from statusboard.models import (
    HealthState,
    HistorySummary,
    ServiceState,
    Snapshot,
    Severity,
)

_GB = 1024 ** 3

_HEALTH_CLASS = {
    HealthState.HEALTHY: "healthy",
    HealthState.WARNING: "warning",
    HealthState.CRITICAL: "critical",
}

_STYLE = """
body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 20px; background: #f0f2f5; color: #2d3748; }
.container { max-width: 1200px; margin: 0 auto; }
.header { background: linear-gradient(135deg, #2d3748, #4a5568); color: white; padding: 24px; border-radius: 12px; }
.status { padding: 12px; border-radius: 8px; margin-top: 12px; font-weight: bold; font-size: 18px; }
.healthy { background: #c6f6d5; color: #22543d; }
.warning { background: #feebc8; color: #744210; }
.critical { background: #fed7d7; color: #742a2a; }
.grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(240px, 1fr)); gap: 16px; margin: 20px 0; }
.card { background: white; padding: 18px; border-radius: 10px; box-shadow: 0 2px 4px rgba(0,0,0,0.05); }
.card h3 { margin-top: 0; }
.value { font-size: 26px; font-weight: bold; }
.bar { height: 8px; background: #e2e8f0; border-radius: 4px; overflow: hidden; }
.fill { height: 100%; background: #4299e1; }
.alert { padding: 12px; margin: 8px 0; border-radius: 4px; border-left: 4px solid; }
.alert.critical { border-color: #c53030; }
.alert.warning { border-color: #d69e2e; }
.footer { text-align: center; color: #718096; padding: 16px; }
"""

_REFRESH_SCRIPT = """
<script>
const GB = 1024 ** 3;
function esc(text) {
  const div = document.createElement('div');
  div.textContent = text == null ? '' : String(text);
  return div.innerHTML;
}
function card(title, value, note, pct) {
  const bar = pct == null ? '' :
    '<div class="bar"><div class="fill" style="width: ' + Math.max(0, Math.min(pct, 100)).toFixed(0) + '%%"></div></div>';
  return '<div class="card"><h3>' + esc(title) + '</h3><div class="value">' + esc(value) + '</div>' + bar + '<small>' + esc(note) + '</small></div>';
}
function renderSystem(m) {
  if (m.degraded) {
    return '<div class="card critical"><h3>System metrics unavailable</h3><p>' + esc(m.error) + '</p></div>';
  }
  const mem = m.memory_used_ratio * 100;
  const disk = m.disk_used_ratio * 100;
  const up = m.uptime_seconds;
  const cards = [
    card('CPU Load (1-min)', m.cpu_load.toFixed(2), m.cpu_percent.toFixed(1) + '%% busy', Math.min(m.cpu_load * 10, 100)),
    card('Memory Usage', mem.toFixed(1) + '%%', (m.memory_used_bytes / GB).toFixed(1) + 'GB / ' + (m.memory_total_bytes / GB).toFixed(1) + 'GB', mem),
    card('Disk Usage', disk.toFixed(1) + '%%', (m.disk_used_bytes / GB).toFixed(1) + 'GB / ' + (m.disk_total_bytes / GB).toFixed(1) + 'GB', disk),
    card('Processes', String(m.process_count), 'running processes'),
    card('Uptime', Math.floor(up / 86400) + 'd ' + Math.floor(up %% 86400 / 3600) + 'h ' + Math.floor(up %% 3600 / 60) + 'm', 'since boot'),
  ];
  if (m.network_connections != null) {
    cards.push(card('Network Connections', String(m.network_connections), 'inet sockets'));
  }
  for (const [name, count] of Object.entries(m.watched_processes || {})) {
    cards.push(card('Process: ' + name, count > 0 ? 'RUNNING' : 'STOPPED', count + ' matching'));
  }
  return '<h2>System</h2><div class="grid">' + cards.join('') + '</div>';
}
function renderServices(services) {
  const cards = services.map(svc => {
    const css = svc.state === 'HEALTHY' ? 'healthy' : 'critical';
    let detail = svc.response_time_ms + 'ms';
    if (svc.version) { detail += ' | v' + svc.version; }
    const error = svc.error ? '<p>' + esc(svc.error) + '</p>' : '';
    return '<div class="card service" data-service="' + esc(svc.name) + '"><h3>' + esc(svc.name) + '</h3>' +
      '<div class="status ' + css + '">' + esc(svc.state) + '</div><p>' + esc(svc.url) + '</p><small>' + esc(detail) + '</small>' + error + '</div>';
  });
  return '<h2>Services</h2><div class="grid">' + cards.join('') + '</div>';
}
function renderAlerts(alerts) {
  if (!alerts.length) {
    return '<div class="card"><h2>All Systems Operational</h2><p>No alerts detected.</p></div>';
  }
  const rows = alerts.map(a =>
    '<div class="alert ' + (a.severity === 'CRITICAL' ? 'critical' : 'warning') + '">' + esc(a.label) + '</div>');
  return '<div class="card"><h2>Alerts (' + alerts.length + ')</h2>' + rows.join('') + '</div>';
}
function renderSummary(s) {
  return '<div class="footer">Total Checks: ' + s.total_checks + ' | Total Alerts: ' + s.total_alerts +
    ' | Last Check: ' + esc(s.last_check ? s.last_check.slice(0, 19) : 'never') + '</div>';
}
async function refreshStatus() {
  try {
    const resp = await fetch('/api/status');
    if (!resp.ok) { return; }
    const snap = await resp.json();
    const banner = document.getElementById('overall-health');
    banner.className = 'status ' + snap.overall_health.toLowerCase();
    banner.textContent = 'System Status: ' + snap.overall_health;
    document.getElementById('snapshot-time').textContent = 'Snapshot: ' + snap.timestamp.slice(0, 19);
    document.getElementById('system-section').innerHTML = renderSystem(snap.system);
    document.getElementById('services-section').innerHTML = renderServices(snap.services);
    document.getElementById('alerts-section').innerHTML = renderAlerts(snap.alerts);
    const hist = await fetch('/api/history?limit=0');
    if (hist.ok) {
      document.getElementById('summary-section').innerHTML = renderSummary((await hist.json()).summary);
    }
  } catch (err) { console.error('status refresh failed', err); }
}
setInterval(refreshStatus, %d);
</script>
"""


def render_dashboard(
    snapshot: Snapshot,
    summary: HistorySummary | None = None,
    refresh_seconds: int = 30,
) -> str:
    """Render the full page. ``refresh_seconds=0`` omits the refresh script."""
    health = snapshot.overall_health
    display = snapshot.display
    script = _REFRESH_SCRIPT % (refresh_seconds * 1000) if refresh_seconds > 0 else ""
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{escape(display.title)}</title>
<style>{_STYLE}</style>
</head>
<body>
<div class="container">
  <div class="header">
    <h1>{escape(display.title)}</h1>
    <p>{escape(display.subtitle)}</p>
    <p>Host: {escape(snapshot.system.hostname)} | Platform: {escape(snapshot.system.platform)}/{escape(snapshot.system.arch)}</p>
    <p id="snapshot-time">Snapshot: {escape(snapshot.timestamp.isoformat(timespec="seconds"))}</p>
    <div class="status {_HEALTH_CLASS[health]}" id="overall-health">System Status: {health.value}</div>
  </div>
  <div id="system-section">{_render_system(snapshot)}</div>
  <div id="services-section">{_render_services(snapshot)}</div>
  <div id="alerts-section">{_render_alerts(snapshot)}</div>
  {_render_facts(snapshot)}
  <div id="summary-section">{_render_summary(summary)}</div>
</div>
{script}
</body>
</html>
"""


def _render_system(snapshot: Snapshot) -> str:
    m = snapshot.system
    if m.degraded:
        return (
            '<div class="card critical"><h3>System metrics unavailable</h3>'
            f"<p>{escape(m.error or '')}</p></div>"
        )
    memory_pct = m.memory_used_ratio * 100
    disk_pct = m.disk_used_ratio * 100
    cards = [
        _metric_card("CPU Load (1-min)", f"{m.cpu_load:.2f}", f"{m.cpu_percent:.1f}% busy", min(m.cpu_load * 10, 100)),
        _metric_card(
            "Memory Usage",
            f"{memory_pct:.1f}%",
            f"{m.memory_used_bytes / _GB:.1f}GB / {m.memory_total_bytes / _GB:.1f}GB",
            memory_pct,
        ),
        _metric_card(
            "Disk Usage",
            f"{disk_pct:.1f}%",
            f"{m.disk_used_bytes / _GB:.1f}GB / {m.disk_total_bytes / _GB:.1f}GB",
            disk_pct,
        ),
        _metric_card("Processes", str(m.process_count), "running processes"),
        _metric_card("Uptime", _format_uptime(m.uptime_seconds), "since boot"),
    ]
    if m.network_connections is not None:
        cards.append(_metric_card("Network Connections", str(m.network_connections), "inet sockets"))
    for name, count in m.watched_processes.items():
        state = "RUNNING" if count > 0 else "STOPPED"
        cards.append(_metric_card(f"Process: {name}", state, f"{count} matching"))
    return f'<h2>System</h2><div class="grid">{"".join(cards)}</div>'


def _metric_card(title: str, value: str, note: str, percent: float | None = None) -> str:
    bar = ""
    if percent is not None:
        bar = f'<div class="bar"><div class="fill" style="width: {max(0.0, min(percent, 100.0)):.0f}%"></div></div>'
    return (
        f'<div class="card"><h3>{escape(title)}</h3>'
        f'<div class="value">{escape(value)}</div>{bar}<small>{escape(note)}</small></div>'
    )


def _render_services(snapshot: Snapshot) -> str:
    cards = []
    for status in snapshot.services:
        css = "healthy" if status.state == ServiceState.HEALTHY else "critical"
        detail = f"{status.response_time_ms}ms"
        if status.version:
            detail += f" | v{status.version}"
        error = f"<p>{escape(status.error)}</p>" if status.error else ""
        cards.append(
            f'<div class="card service" data-service="{escape(status.name)}">'
            f"<h3>{escape(status.name)}</h3>"
            f'<div class="status {css}">{status.state.value}</div>'
            f"<p>{escape(status.url)}</p><small>{escape(detail)}</small>{error}</div>"
        )
    return f'<h2>Services</h2><div class="grid">{"".join(cards)}</div>'


def _render_alerts(snapshot: Snapshot) -> str:
    if not snapshot.alerts:
        return '<div class="card"><h2>All Systems Operational</h2><p>No alerts detected.</p></div>'
    rows = []
    for alert in snapshot.alerts:
        css = "critical" if alert.severity == Severity.CRITICAL else "warning"
        rows.append(f'<div class="alert {css}">{escape(alert.label)}</div>')
    return f'<div class="card"><h2>Alerts ({len(snapshot.alerts)})</h2>{"".join(rows)}</div>'


def _render_facts(snapshot: Snapshot) -> str:
    facts = snapshot.display.facts
    if not facts:
        return ""
    rows = "".join(
        f"<p><strong>{escape(k)}:</strong> {escape(v)}</p>" for k, v in facts.items()
    )
    return f'<div class="card"><h2>About</h2>{rows}</div>'


def _render_summary(summary: HistorySummary | None) -> str:
    if summary is None:
        return ""
    last = summary.last_check.isoformat(timespec="seconds") if summary.last_check else "never"
    return (
        f'<div class="footer">Total Checks: {summary.total_checks} | '
        f"Total Alerts: {summary.total_alerts} | Last Check: {escape(last)}</div>"
    )


def _format_uptime(seconds: int) -> str:
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    return f"{days}d {hours}h {rem // 60}m"
