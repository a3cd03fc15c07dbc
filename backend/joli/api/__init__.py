from flask import request

from joli.errors import ValidationError


def int_arg(name, default, minimum=1, maximum=None):
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError.for_field(name, f'{name} must be an integer')
    if value < minimum or (maximum is not None and value > maximum):
        bound = f'between {minimum} and {maximum}' if maximum is not None else f'at least {minimum}'
        raise ValidationError.for_field(name, f'{name} must be {bound}')
    return value


def choice_arg(name, choices):
    value = request.args.get(name)
    if value and value not in choices:
        raise ValidationError.for_field(name, f'Invalid {name}')
    return value or None


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError.for_field('body', 'Request body must be a JSON object')
    return data
