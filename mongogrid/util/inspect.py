import inspect
from functools import lru_cache
from typing import Callable, Mapping, Tuple


@lru_cache(100)
def get_function_defaults(for_func: Callable) -> dict:
    """ Get a dict of function's keyword arguments that have default values

        These are the settings a handler accepts.
    """
    return {
        name: param.default
        for name, param in inspect.signature(for_func).parameters.items()
        if param.default is not inspect.Parameter.empty
        and param.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    }


def pluck_kwargs_from(dct: Mapping, for_func: Callable, skip: Tuple[str] = ()) -> dict:
    """ Analyze a function, pluck the arguments it needs from a dict

        Arguments that are not in `dct` get their default values.
    """
    defaults = get_function_defaults(for_func)
    return {k: dct.get(k, default)
            for k, default in defaults.items()
            if k not in skip}
