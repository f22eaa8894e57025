"""Vault Control Meta information.
   Vault Control drives the system backend of a secret store:
   seal state, initialization, backend mounts and token capabilities.
"""
__title__ = 'vault_control'
__description__ = (
   'Vault Control drives the system backend of a secret store: '
   'seal state, initialization, backend mounts and token capabilities.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2026 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/vault-control'
