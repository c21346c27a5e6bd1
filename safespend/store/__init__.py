from importlib import import_module

DEFAULT_STORE = "safespend.store.sqlite.SQLiteStore"


def get_store(config):
    store_path = config.get('store') or DEFAULT_STORE
    module_name, cls_name = store_path.rsplit('.', 1)
    mod = import_module(module_name)
    return getattr(mod, cls_name)(config)
