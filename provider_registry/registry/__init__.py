"""Registry — addressing, persistence and publishing for provider builds.

The registry provides:
- Addressing: (namespace, name, version, os, arch) keys for platform builds
- Discovery: version listing derived from the stored records
- Publishing: signing-key enrichment of uploaded metadata before storage
"""
