"""Demo log used by the ``demo`` command."""

from __future__ import annotations

DEMO_LOG = "\n".join(
    [
        "Id\tДействие\tОператор\tЗаказ\tДата",
        "1474424\tСтатус пост-обработка\t2964-Мебагишвили Теона 5072 ГП\t\t2026-02-13 19:55:34",
        "1474422\tОткрытие заказа\t2964-Мебагишвили Теона 5072 ГП\t393470\t2026-02-13 19:46:53",
        "1474409\tСтатус в работе\t2964-Мебагишвили Теона 5072 ГП\t\t2026-02-13 19:20:28",
        "1474408\tЗакрытие заказа\t2964-Мебагишвили Теона 5072 ГП\t393441\t2026-02-13 19:20:20",
        "1474404\tСтатус пост-обработка\t2964-Мебагишвили Теона 5072 ГП\t\t2026-02-13 19:11:53",
        "1474403\tОткрытие заказа\t2964-Мебагишвили Теона 5072 ГП\t393441\t2026-02-13 19:11:46",
        "1474402\tСтатус в работе\t2964-Мебагишвили Теона 5072 ГП\t\t2026-02-13 19:11:23",
        "1472234\tСтатус в работе\t2964-Мебагишвили Теона 5072 ГП\t\t2026-02-13 11:52:11",
    ]
)
