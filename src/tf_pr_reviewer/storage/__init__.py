"""
Preference Storage

Flat JSON file mapping repositories to their review priorities.
"""

from .preferences import PreferenceStore, PreferenceStoreError

__all__ = ['PreferenceStore', 'PreferenceStoreError']
