"""
WebFinger Discovery

This package implements an RFC 7033 WebFinger client that is safe to point at
untrusted, caller supplied hosts.

Key Components:
- client.py: WebFinger client with lookup and lookup_link
- address.py: Address parsing into host and resource
- host.py: Host sanitization and private address classification
- dns.py: DNS resolution guard against public names with private addresses
- fetch.py: Redirect-safe JRD fetcher
- cascade.py: Endpoint fallback state machine
- normalize.py: JRD parsing and link indexing
- __main__.py: CLI interface for lookups

Lookup Flow:
1. Parse the address into a target host and an acct: (or explicit) resource
2. Sanitize the host and refuse private, loopback, link-local, multicast and
   reserved targets unless explicitly allowed
3. Resolve the hostname and refuse it if any A/AAAA record is private
4. Request /.well-known/webfinger, following the configured fallbacks
   (host-meta endpoints, HTTP downgrade, deprecated webfist.org relay)
5. Follow at most three redirects, re-validating every redirect target
6. Index the JRD links by relation category and extract the display name

No lookup state is shared between calls, so a single client can be used
concurrently.
"""
