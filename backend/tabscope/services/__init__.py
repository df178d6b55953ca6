"""
TabScope Backend — Services Layer
===================================

Service Inventory:
    - store.py:       TabStore contract and its SQLAlchemy implementation
    - resolver.py:    merge of system/organization/role/user records
    - guard.py:       "would anything stay visible?" simulation
    - ownership.py:   who may change which record, at which scope
    - tab_service.py: TabConfigService, the operations the routes call
    - seeding.py:     system tab catalog and idempotent seeder
    - presets.py:     specialty layout catalog

Only store.py talks to the database; everything above it receives a
TabStore and a CallerIdentity per call.
"""
