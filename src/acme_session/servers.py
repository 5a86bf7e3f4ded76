"""Directory URLs of well-known ACME servers."""

LETS_ENCRYPT_V2 = 'https://acme-v02.api.letsencrypt.org/directory'
"""Let's Encrypt production."""

LETS_ENCRYPT_STAGING_V2 = 'https://acme-staging-v02.api.letsencrypt.org/directory'
"""Let's Encrypt staging."""

GOOGLE_V2 = 'https://dv.acme-v02.api.pki.goog/directory'
"""Google Trust Services production."""

GOOGLE_STAGING_V2 = 'https://dv.acme-v02.test-api.pki.goog/directory'
"""Google Trust Services staging."""

ZEROSSL_V2 = 'https://acme.zerossl.com/v2/DV90'
"""ZeroSSL production."""
