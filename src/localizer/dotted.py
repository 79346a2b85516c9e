"""
Операции над вложенными словарями через dot-нотацию.

    get_path({"a": {"b": "x"}}, "a.b")      -> "x"
    flatten({"a": {"b": "x"}}, "ns.")       -> {"ns.a.b": "x"}
"""

from typing import Any, Dict

_MISSING = object()


def has_path(data: Dict[str, Any], path: str) -> bool:
    """Проверяет наличие вложенного ключа."""
    return get_path(data, path, _MISSING) is not _MISSING


def get_path(data: Dict[str, Any], path: str, default: Any = None) -> Any:
    """Возвращает значение по пути 'a.b.c' или default."""
    if not path:
        return data
    if path in data:
        return data[path]

    current: Any = data
    for segment in path.split("."):
        if not isinstance(current, dict) or segment not in current:
            return default
        current = current[segment]
    return current


def set_path(data: Dict[str, Any], path: str, value: Any) -> Dict[str, Any]:
    """
    Устанавливает значение по пути, создавая промежуточные словари.

    Нестроковые промежуточные значения (листья) перезаписываются словарём.
    """
    segments = path.split(".")
    current = data
    for segment in segments[:-1]:
        if not isinstance(current.get(segment), dict):
            current[segment] = {}
        current = current[segment]
    current[segments[-1]] = value
    return data


def forget_path(data: Dict[str, Any], path: str) -> Dict[str, Any]:
    """Удаляет ключ по пути. Отсутствующий путь - no-op."""
    if path in data:
        del data[path]
        return data

    segments = path.split(".")
    current: Any = data
    for segment in segments[:-1]:
        if not isinstance(current, dict) or segment not in current:
            return data
        current = current[segment]
    if isinstance(current, dict):
        current.pop(segments[-1], None)
    return data


def flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    Разворачивает вложенный словарь в плоский с ключами 'a.b.c'.

    Пустые вложенные словари сохраняются как листья.
    """
    result: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            result.update(flatten(value, f"{full_key}."))
        else:
            result[full_key] = value
    return result


def replace_recursive(base: Dict[str, Any], items: Dict[str, Any]) -> Dict[str, Any]:
    """
    Рекурсивный merge: значения из items перекрывают base,
    ключи, которых нет в items, сохраняются.
    """
    result = dict(base)
    for key, value in items.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = replace_recursive(result[key], value)
        else:
            result[key] = value
    return result
