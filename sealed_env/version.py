"""sealed-env Meta information.
   sealed-env encrypts KEY=VALUE configuration files for untrusted storage
   and loads them back into a read-only runtime store.
"""
__title__ = 'sealed_env'
__description__ = (
   'Hybrid RSA/AES-GCM encryption of KEY=VALUE configuration files '
   'and a read-only runtime configuration store.'
)
__version__ = '0.1.0'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/sealed-env/sealed-env'
