"""Static catalogs of signtool `sign` options.

Each catalog maps an option name to its arity: the number of positional
values that follow the option on the command line. The catalogs are
read-only for the lifetime of the process.

FORWARDABLE_OPTIONS are relayed verbatim to the remote signer.
REJECTED_OPTIONS are known signtool options that must not be relayed,
mostly because they reference local key material (`/f`, `/p`) or select
signing modes the remote host does not offer (detached digests, PKCS7).
"""

from types import MappingProxyType
from typing import Mapping

SUPPORTED_COMMAND = "sign"

OPTION_PREFIX = "/"

FORWARDABLE_OPTIONS: Mapping[str, int] = MappingProxyType({
    # Certificate selection
    "/a": 0,
    "/c": 1,
    "/i": 1,
    "/n": 1,
    "/r": 1,
    "/s": 1,
    "/sm": 0,
    "/sha1": 1,
    "/fd": 1,
    "/u": 1,
    "/uw": 0,
    # Private key selection
    "/csp": 1,
    "/kc": 1,
    # Signing parameters
    "/as": 0,
    "/d": 1,
    "/du": 1,
    "/t": 1,
    "/tr": 1,
    "/tseal": 1,
    "/td": 1,
    # Repeatable authenticated attribute: OID and value.
    # TODO: confirm against signtool whether repeated /sa pairs need grouping.
    "/sa": 2,
    "/seal": 0,
    "/itos": 0,
    "/force": 0,
    "/nosealwarn": 0,
    # Other
    "/ph": 0,
    "/nph": 0,
    "/rmc": 0,
    "/q": 0,
    "/v": 0,
    "/debug": 0,
})

REJECTED_OPTIONS: Mapping[str, int] = MappingProxyType({
    # Certificate selection from local files
    "/ac": 1,
    "/f": 1,
    "/p": 1,
    # Digest signing
    "/dg": 1,
    "/ds": 0,
    "/di": 1,
    "/dxml": 0,
    "/dlib": 1,
    "/dmdf": 1,
    # PKCS7
    "/p7": 1,
    "/p7co": 1,
    "/p7ce": 1,
})

