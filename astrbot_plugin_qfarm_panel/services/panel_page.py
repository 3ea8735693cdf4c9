from __future__ import annotations

DASHBOARD_HTML = """<!doctype html>
<html lang="zh-CN">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>QQ农场监控面板</title>
  <style>
    :root {
      --bg0: #130a2f; --bg1: #1d0f47; --bg2: #2f1062;
      --card: rgba(42, 26, 86, 0.64); --line: rgba(255,255,255,0.16);
      --text: #f5eefe; --muted: #c5b6ea; --ok: #29d678; --gold: #f2d35c; --pink: #f95cb8;
    }
    * { box-sizing: border-box; }
    body {
      margin: 0; min-height: 100vh; padding: 22px; color: var(--text);
      font-family: "PingFang SC", "Microsoft YaHei", "Segoe UI", sans-serif;
      background: linear-gradient(140deg, var(--bg0), var(--bg1) 52%, var(--bg2));
    }
    .wrap { max-width: 1280px; margin: 0 auto; }
    .header { display: flex; justify-content: space-between; align-items: center; margin-bottom: 14px; }
    h1 { margin: 0; font-size: 30px; }
    .small { margin-top: 6px; color: var(--muted); font-size: 14px; }
    .pill { border: 1px solid var(--line); border-radius: 999px; padding: 10px 16px; font-weight: 700; }
    .grid { display: grid; grid-template-columns: repeat(3, minmax(0, 1fr)); gap: 14px; }
    .card { border-radius: 16px; border: 1px solid var(--line); background: var(--card); padding: 16px 18px; }
    .heading { font-size: 26px; font-weight: 800; margin: 3px 0 10px; }
    .meta { color: var(--muted); font-size: 14px; margin-bottom: 10px; }
    .line { display: flex; justify-content: space-between; margin: 8px 0; font-size: 16px; }
    .k { color: #c9bbea; }
    .v { font-weight: 700; }
    .gold { color: var(--gold); }
    .online { color: #7ef0b0; }
    .offline { color: #ff8e8e; }
    .progress { margin-top: 8px; height: 10px; border-radius: 999px; background: rgba(13,6,35,.4); overflow: hidden; }
    .bar { width: 0%; height: 100%; transition: width .45s ease; background: linear-gradient(90deg, var(--pink), #ff9ed9); }
    .bar.exp { background: linear-gradient(90deg, #f4c433, #ffdd74); }
    .wide { grid-column: span 3; }
    .controls { display: grid; grid-template-columns: repeat(3, minmax(0, 1fr)); gap: 10px; margin-bottom: 10px; }
    .field { display: flex; flex-direction: column; gap: 6px; font-size: 12px; color: #cabcec; }
    .field input, .field select { padding: 8px; border-radius: 8px; border: 1px solid var(--line); background: #1b0f3d; color: var(--text); }
    .btn { padding: 9px 14px; border-radius: 10px; border: 1px solid var(--line); background: #3b1f7a; color: var(--text); cursor: pointer; text-decoration: none; }
    .btn-row { display: flex; gap: 10px; flex-wrap: wrap; margin-bottom: 10px; }
    .chips { display: flex; gap: 10px; flex-wrap: wrap; margin: 10px 0; }
    .chip { border: 1px solid var(--line); border-radius: 999px; padding: 6px 11px; font-size: 13px; }
    .logs { max-height: 260px; overflow: auto; font-family: Consolas, monospace; font-size: 13px; white-space: pre-wrap; }
    .log-WARN { color: #ffd166; }
    .log-ERROR { color: #ff8e8e; }
    @media (max-width: 900px) { .grid { grid-template-columns: 1fr; } .wide { grid-column: span 1; } }
  </style>
</head>
<body>
  <div class="wrap">
    <div class="header">
      <div>
        <h1>🌾 QQ农场监控面板</h1>
        <div class="small">上次更新：<span id="lastUpdate">--</span></div>
      </div>
      <div class="pill" id="healthTop">连接中...</div>
    </div>

    <div class="grid">
      <section class="card">
        <div class="meta">账号概览</div>
        <div class="heading" id="name">未登录</div>
        <div class="line"><span class="k">平台</span><span class="v" id="platform">-</span></div>
        <div class="line"><span class="k">等级</span><span class="v">Lv.<span id="level">0</span></span></div>
      </section>

      <section class="card">
        <div class="meta">经验核心指标</div>
        <div class="heading"><span id="expPerHour">计算中</span></div>
        <div class="line"><span class="k">经验/小时</span><span class="v">样本 <span id="sampleWindow">0</span>s</span></div>
        <div class="line"><span class="k">本次增量</span><span class="v">+<span id="expGain">0</span></span></div>
      </section>

      <section class="card">
        <div class="meta">金币核心指标</div>
        <div class="heading gold">💰 <span id="gold">0</span></div>
        <div class="line"><span class="k">金币/小时</span><span class="v gold" id="goldPerHour">计算中</span></div>
        <div class="line"><span class="k">本次增量</span><span class="v gold">+<span id="goldGain">0</span></span></div>
      </section>

      <section class="card">
        <div class="heading">等级进度</div>
        <div class="line"><span class="k">总经验</span><span class="v" id="exp">0</span></div>
        <div class="line"><span class="k">当前等级进度</span><span class="v"><span id="expCurrent">0</span> / <span id="expNeeded">0</span></span></div>
        <div class="progress"><div class="bar" id="levelBar"></div></div>
        <div class="line"><span class="k">升级预估</span><span class="v" id="etaLevel">--</span></div>
      </section>

      <section class="card">
        <div class="heading" id="connState">连接状态</div>
        <div class="line"><span class="k">运行时长</span><span class="v" id="uptime">0秒</span></div>
        <div class="line"><span class="k">请求延迟</span><span class="v" id="latency">0 ms</span></div>
        <div class="line"><span class="k">连续失败次数</span><span class="v" id="failCount">0</span></div>
      </section>

      <section class="card">
        <div class="heading">速率可信度</div>
        <div class="line"><span class="k">速率状态</span><span class="v" id="rateStatus">计算中</span></div>
        <div class="line"><span class="k">最小采样窗口</span><span class="v"><span id="rateWindow">120</span>s</span></div>
        <div class="line"><span class="k">服务时间</span><span class="v" id="serverTime">--</span></div>
        <div class="progress"><div class="bar exp" id="goldBar"></div></div>
      </section>

      <section class="card wide">
        <div class="heading">FarmCalc 整合计算器</div>
        <div class="controls">
          <label class="field">等级<input id="calcLevel" type="number" min="1" max="200" value="27"/></label>
          <label class="field">地块数<input id="calcLands" type="number" min="1" max="200" value="18"/></label>
          <label class="field">策略模式
            <select id="calcMode"><option value="normalFert">普通肥</option><option value="noFert">不施肥</option></select>
          </label>
        </div>
        <div class="btn-row">
          <button id="btnCalc" class="btn">计算推荐</button>
          <button id="btnApplyTop" class="btn">应用Top1到机器人</button>
          <button id="btnClearManual" class="btn">切回自动</button>
          <a id="calcFullLink" href="/calc/" target="_blank" class="btn">打开完整 FarmCalc 页面</a>
        </div>
        <div class="controls">
          <label class="field">自己农场巡查间隔(秒)<input id="farmIntervalSec" type="number" min="1" value="1"/></label>
          <label class="field">好友农场巡查间隔(秒)<input id="friendIntervalSec" type="number" min="1" value="10"/></label>
          <label class="field">操作<button id="btnApplyIntervals" class="btn">实时应用巡查间隔</button></label>
        </div>
        <div class="chips">
          <div class="chip">当前机器人策略：<b id="strategyNow">自动</b></div>
          <div class="chip">推荐Top1：<b id="calcTop1">-</b></div>
          <div class="chip">当前巡查：<b id="currentIntervals">农场1s / 好友10s</b></div>
        </div>
        <div id="calcList"></div>
      </section>

      <section class="card wide">
        <div class="heading">运行日志</div>
        <div class="logs" id="logs"></div>
      </section>
    </div>
  </div>

  <script>
    const token = new URLSearchParams(location.search).get('token') || '';
    let loading = false;
    let failedCount = 0;
    let lastLogId = 0;
    let lastCalcResult = null;

    function withToken(path) {
      if (!token) return path;
      return path + (path.indexOf('?') >= 0 ? '&' : '?') + 'token=' + encodeURIComponent(token);
    }

    async function getJson(path) {
      const res = await fetch(withToken(path), { cache: 'no-store' });
      if (!res.ok) throw new Error('http_' + res.status);
      return res.json();
    }

    async function postJson(path, payload) {
      const res = await fetch(withToken(path), {
        method: 'POST',
        headers: { 'content-type': 'application/json' },
        body: JSON.stringify(payload || {}),
      });
      if (!res.ok) throw new Error('http_' + res.status);
      return res.json();
    }

    function $(id) { return document.getElementById(id); }
    function fmtNum(n) { return Number(n || 0).toLocaleString('zh-CN'); }
    function fmtClock(d) { return d.toLocaleTimeString('zh-CN', { hour12: false }); }

    function fmtUptime(sec) {
      const days = Math.floor(sec / 86400);
      const hours = Math.floor((sec % 86400) / 3600);
      const mins = Math.floor((sec % 3600) / 60);
      const s = sec % 60;
      if (days > 0) return days + '天 ' + hours + '时 ' + mins + '分';
      if (hours > 0) return hours + '时 ' + mins + '分 ' + s + '秒';
      return mins + '分 ' + s + '秒';
    }

    function fmtEta(hours) {
      if (!Number.isFinite(hours) || hours <= 0) return '--';
      if (hours < 1) return Math.max(1, Math.round(hours * 60)) + ' 分钟';
      if (hours < 24) return hours.toFixed(1) + ' 小时';
      return (hours / 24).toFixed(1) + ' 天';
    }

    function setOnline(ok) {
      $('healthTop').textContent = ok ? '已连接' : '连接异常';
      $('connState').textContent = ok ? '在线' : '离线';
      $('connState').className = ok ? 'heading online' : 'heading offline';
      $('failCount').textContent = String(failedCount);
    }

    function render(data, latency) {
      const s = data.status || {};
      const m = data.metrics || {};
      const strategy = data.strategy || {};
      const settings = data.settings || {};
      const up = Number(data.uptimeSec || 0);
      const rateReady = !!m.rateReady;
      const remainExp = Math.max(0, Number(m.expNeeded || 0) - Number(m.expCurrent || 0));
      const etaHours = rateReady && Number(m.expPerHour || 0) > 0 ? remainExp / Number(m.expPerHour) : NaN;

      $('lastUpdate').textContent = new Date().toLocaleString('zh-CN', { hour12: false });
      $('platform').textContent = s.platform || '-';
      $('name').textContent = s.name || '未登录';
      $('level').textContent = String(s.level || 0);
      $('exp').textContent = fmtNum(s.exp);
      $('gold').textContent = fmtNum(s.gold);
      $('expGain').textContent = fmtNum(m.expGain);
      $('goldGain').textContent = fmtNum(m.goldGain);
      $('expPerHour').textContent = rateReady ? fmtNum(m.expPerHour) : '计算中';
      $('goldPerHour').textContent = rateReady ? fmtNum(m.goldPerHour) : '计算中';
      $('expCurrent').textContent = fmtNum(m.expCurrent);
      $('expNeeded').textContent = fmtNum(m.expNeeded);
      $('etaLevel').textContent = rateReady ? fmtEta(etaHours) : '样本不足';
      $('sampleWindow').textContent = String(Math.min(up, Number(m.rateWindowSec || 120)));
      $('rateWindow').textContent = String(Number(m.rateWindowSec || 120));
      $('rateStatus').textContent = rateReady ? '稳定' : '计算中';
      $('uptime').textContent = fmtUptime(up);
      $('latency').textContent = Math.max(0, latency) + ' ms';
      $('serverTime').textContent = data.serverTime ? fmtClock(new Date(data.serverTime)) : '--';
      $('levelBar').style.width = Math.max(5, Math.min(100, Number(m.expProgress || 0))) + '%';
      $('goldBar').style.width = Math.max(5, Math.min(100, Number(m.goldRateProgress || 0))) + '%';

      const modeText = strategy.mode === 'noFert' ? '不施肥' : '普通肥';
      const sourceText = strategy.source === 'manual' ? '手动' : '自动';
      const last = strategy.lastDecision;
      const lastSeedText = last && last.seedId ? ('种子#' + last.seedId + (last.seedName ? ' ' + last.seedName : '')) : '无';
      const seedText = strategy.manualSeedId
        ? ('种子#' + strategy.manualSeedId + (strategy.manualSeedName ? ' ' + strategy.manualSeedName : ''))
        : lastSeedText;
      $('strategyNow').textContent = sourceText + ' / ' + modeText + ' / ' + seedText;

      const farmSec = Number(settings.farmIntervalSec || 1);
      const friendSec = Number(settings.friendIntervalSec || 10);
      $('currentIntervals').textContent = '农场' + farmSec + 's / 好友' + friendSec + 's';
      if (document.activeElement !== $('farmIntervalSec')) $('farmIntervalSec').value = String(farmSec);
      if (document.activeElement !== $('friendIntervalSec')) $('friendIntervalSec').value = String(friendSec);
    }

    function appendLogs(rows) {
      const box = $('logs');
      for (const row of rows) {
        const line = document.createElement('div');
        line.className = 'log-' + row.level;
        line.textContent = '[' + new Date(row.ts).toLocaleTimeString('zh-CN', { hour12: false }) + '] [' + row.level + '] ' + row.message;
        box.appendChild(line);
        lastLogId = Math.max(lastLogId, row.id);
      }
      while (box.childNodes.length > 300) box.removeChild(box.firstChild);
      if (rows.length) box.scrollTop = box.scrollHeight;
    }

    function renderCalcResult(payload) {
      lastCalcResult = payload;
      const best = payload.best || null;
      $('calcTop1').textContent = best ? (best.name + ' (#' + best.seedId + ')') : '无';
      const list = $('calcList');
      list.textContent = '';
      (payload.candidates || []).slice(0, 5).forEach((x, i) => {
        const row = document.createElement('div');
        row.textContent = (i + 1) + '. ' + x.name + ' (#' + x.seedId + ')  ' + Number(x.expPerHour || 0).toFixed(2) + ' exp/h';
        list.appendChild(row);
      });
      if (!list.childNodes.length) list.textContent = '无候选';
    }

    async function calculateStrategy() {
      const level = Number($('calcLevel').value) || 1;
      const lands = Number($('calcLands').value) || 18;
      const mode = $('calcMode').value || 'normalFert';
      const payload = await getJson('/api/calc?level=' + level + '&lands=' + lands + '&mode=' + mode + '&top=10');
      renderCalcResult(payload);
      return payload;
    }

    async function applyTop1() {
      if (!lastCalcResult || !lastCalcResult.best) await calculateStrategy();
      const best = lastCalcResult && lastCalcResult.best;
      if (!best) return;
      await postJson('/api/strategy', { mode: $('calcMode').value, manualSeedId: best.seedId, manualSeedName: best.name });
      await tick();
    }

    async function clearManualStrategy() {
      await postJson('/api/strategy', { mode: $('calcMode').value, clearManual: true });
      await tick();
    }

    async function applyIntervals() {
      await postJson('/api/settings', {
        farmIntervalSec: Number($('farmIntervalSec').value) || 1,
        friendIntervalSec: Number($('friendIntervalSec').value) || 1,
      });
      await tick();
    }

    async function tick() {
      if (loading) return;
      loading = true;
      const t0 = Date.now();
      try {
        const data = await getJson('/api/state');
        failedCount = Math.max(0, failedCount - 1);
        render(data, Date.now() - t0);
        if (data.lastLogId !== lastLogId) {
          const logs = await getJson('/api/logs?since=' + lastLogId);
          appendLogs(logs.logs || []);
        }
        setOnline(true);
      } catch (e) {
        failedCount += 1;
        setOnline(false);
      } finally {
        loading = false;
      }
    }

    $('btnCalc').addEventListener('click', () => { calculateStrategy().catch(() => {}); });
    $('btnApplyTop').addEventListener('click', () => { applyTop1().catch(() => {}); });
    $('btnClearManual').addEventListener('click', () => { clearManualStrategy().catch(() => {}); });
    $('btnApplyIntervals').addEventListener('click', () => { applyIntervals().catch(() => {}); });
    $('calcFullLink').href = withToken('/calc/');

    tick();
    calculateStrategy().catch(() => {});
    setInterval(tick, 2000);
  </script>
</body>
</html>
"""


def dashboard_html() -> str:
    return DASHBOARD_HTML
