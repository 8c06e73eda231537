"""Client side of the remote signing service.

Classifies a `sign` command line, resolves the files it names, and relays
them to a signing server, writing the signed copies back in place.
"""
