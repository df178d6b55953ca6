"""
TabScope Backend — API Routes Package
=======================================

Route Inventory:
    - tab_configs.py:  /api/tab-configs           (resolve, create, edit,
                                                   delete, reorder, reset,
                                                   visibility overrides)
    - tab_presets.py:  /api/tab-presets           (list, apply)
    - health.py:       /health

Routes stay thin: parse the request, build the caller identity and the
store, call tab_config_service, shape the response.
"""
