"""QQ 农场运行面板：状态遥测、收益指标、种植策略与巡查间隔。"""
