"""
Image Reference Parsing

Parses and normalizes container image references following the distribution
reference grammar (``[domain/]path[:tag][@digest]``), renders them in the
familiar form used by the Docker CLI and matches them against shell-style
patterns.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from imageprune.core.exceptions import PatternCompileFailure, ReferenceFormatError

DEFAULT_DOMAIN = "docker.io"
LEGACY_DEFAULT_DOMAIN = "index.docker.io"
OFFICIAL_REPO_PREFIX = "library/"
DEFAULT_TAG = "latest"
NAME_TOTAL_LENGTH_MAX = 255

_ALNUM = r"[a-z0-9]+"
_SEPARATOR = r"(?:[._]|__|[-]+)"
_PATH_COMPONENT = _ALNUM + r"(?:" + _SEPARATOR + _ALNUM + r")*"
_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_IPV6 = r"\[(?:[a-fA-F0-9:]+)\]"
_DOMAIN = r"(?:" + _DOMAIN_COMPONENT + r"(?:\." + _DOMAIN_COMPONENT + r")*|" + _IPV6 + r")(?::[0-9]+)?"
_TAG = r"[\w][\w.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}"

PATH_RE = re.compile(_PATH_COMPONENT + r"(?:/" + _PATH_COMPONENT + r")*")
DOMAIN_RE = re.compile(_DOMAIN)
TAG_RE = re.compile(_TAG)
DIGEST_RE = re.compile(_DIGEST)
IDENTIFIER_RE = re.compile(r"[a-f0-9]{64}")
REFERENCE_RE = re.compile(
    r"(?P<name>(?:" + _DOMAIN + r"/)?" + _PATH_COMPONENT + r"(?:/" + _PATH_COMPONENT + r")*)"
    r"(?::(?P<tag>" + _TAG + r"))?"
    r"(?:@(?P<digest>" + _DIGEST + r"))?"
)


@dataclass(frozen=True)
class Reference:
    """
    A parsed image reference.

    A reference either names a repository (``domain`` and ``path`` set,
    optionally with ``tag`` and/or ``digest``) or is digest-only, the form
    used for bare image IDs (``domain`` and ``path`` empty).

    Attributes:
        domain: Registry host, including port if any
        path: Repository path within the registry
        tag: Tag, or None
        digest: Content digest ``algorithm:hex``, or None
    """
    domain: str = ""
    path: str = ""
    tag: Optional[str] = None
    digest: Optional[str] = None

    @property
    def is_named(self) -> bool:
        return bool(self.path)

    @property
    def name(self) -> str:
        """Fully qualified repository name."""
        if not self.is_named:
            return ""
        if self.domain:
            return f"{self.domain}/{self.path}"
        return self.path

    def __str__(self) -> str:
        if not self.is_named:
            return self.digest or ""
        value = self.name
        if self.tag:
            value += f":{self.tag}"
        if self.digest:
            value += f"@{self.digest}"
        return value


def _split_domain(name: str) -> Tuple[str, str]:
    """Split a repository name into (domain, remainder), defaulting the domain."""
    index = name.find("/")
    first = name[:index] if index != -1 else ""
    if index == -1 or (
        "." not in first and ":" not in first and first != "localhost" and first.lower() == first
    ):
        domain, remainder = DEFAULT_DOMAIN, name
    else:
        domain, remainder = first, name[index + 1:]

    if domain == LEGACY_DEFAULT_DOMAIN:
        domain = DEFAULT_DOMAIN
    if domain == DEFAULT_DOMAIN and "/" not in remainder:
        remainder = OFFICIAL_REPO_PREFIX + remainder
    return domain, remainder


def parse_normalized_named(value: str) -> Reference:
    """
    Parse a string into a fully qualified named reference.

    Short Docker Hub names are expanded, so ``alpine`` becomes
    ``docker.io/library/alpine``. No default tag is added.

    Args:
        value: Reference string as typed by a user

    Returns:
        Parsed Reference with a repository name

    Raises:
        ReferenceFormatError: If the string is not a valid named reference
    """
    if IDENTIFIER_RE.fullmatch(value):
        raise ReferenceFormatError(
            value, "invalid repository name (64-byte hex), cannot specify 64-byte hexadecimal strings"
        )
    if not value:
        raise ReferenceFormatError(value, "repository name must have at least one component")

    match = REFERENCE_RE.fullmatch(value)
    if match is None:
        name_part = re.split(r"[:@]", value.split("/", 1)[-1], maxsplit=1)[0]
        if name_part.lower() != name_part and REFERENCE_RE.fullmatch(value.lower()):
            raise ReferenceFormatError(value, "repository name must be lowercase")
        raise ReferenceFormatError(value)

    domain, remainder = _split_domain(match.group("name"))
    if remainder.lower() != remainder:
        raise ReferenceFormatError(value, "repository name must be lowercase")
    if not PATH_RE.fullmatch(remainder) or not DOMAIN_RE.fullmatch(domain):
        raise ReferenceFormatError(value)
    if len(domain) + 1 + len(remainder) > NAME_TOTAL_LENGTH_MAX:
        raise ReferenceFormatError(value, "repository name must not be more than 255 characters")

    return Reference(
        domain=domain,
        path=remainder,
        tag=match.group("tag"),
        digest=match.group("digest"),
    )


def parse_docker_ref(value: str) -> Reference:
    """
    Parse a reference the way the Docker engine stores it.

    Adds the ``latest`` tag to untagged names and drops the tag when a digest
    is present.
    """
    ref = parse_normalized_named(value)
    if ref.digest:
        return Reference(domain=ref.domain, path=ref.path, digest=ref.digest)
    if not ref.tag:
        return Reference(domain=ref.domain, path=ref.path, tag=DEFAULT_TAG)
    return ref


def parse_any_reference(value: str) -> Reference:
    """Parse a named reference, treating a bare 64-hex string as an image ID."""
    if IDENTIFIER_RE.fullmatch(value):
        return Reference(digest=f"sha256:{value}")
    return parse_normalized_named(value)


def parse_any(value: str) -> Reference:
    """
    Canonicalize a user-supplied image reference or image ID.

    ``sha256:<hex>`` and bare 64-hex IDs become digest-only references;
    everything else is parsed with :func:`parse_docker_ref`.
    """
    if value.startswith("sha256:") and DIGEST_RE.fullmatch(value):
        return Reference(digest=value)
    if IDENTIFIER_RE.fullmatch(value):
        return Reference(digest=f"sha256:{value}")
    return parse_docker_ref(value)


def familiar_name(ref: Reference) -> str:
    """Return the shortest name that still normalizes to ``ref``'s repository."""
    if not ref.is_named:
        return ""
    if ref.domain != DEFAULT_DOMAIN:
        return ref.name
    path = ref.path
    if path.startswith(OFFICIAL_REPO_PREFIX) and "/" not in path[len(OFFICIAL_REPO_PREFIX):]:
        path = path[len(OFFICIAL_REPO_PREFIX):]
    return path


def familiar_string(ref: Reference) -> str:
    """Render a reference as the Docker CLI would display it."""
    if not ref.is_named:
        return ref.digest or ""
    value = familiar_name(ref)
    if ref.tag:
        value += f":{ref.tag}"
    if ref.digest:
        value += f"@{ref.digest}"
    return value


def _class_char(pattern: str, i: int) -> Tuple[str, int]:
    """Read one (possibly escaped) character of a bracket expression."""
    n = len(pattern)
    if i >= n:
        raise PatternCompileFailure(pattern, "unterminated character class")
    char = pattern[i]
    if char in "-]":
        raise PatternCompileFailure(pattern, "unescaped '-' or ']' in character class")
    if char == "\\":
        i += 1
        if i >= n:
            raise PatternCompileFailure(pattern, "trailing backslash")
        char = pattern[i]
    return char, i + 1


def _translate_path_pattern(pattern: str) -> str:
    """Translate a slash-aware shell pattern into an anchored regex."""
    out = []
    i, n = 0, len(pattern)
    while i < n:
        char = pattern[i]
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "\\":
            i += 1
            if i >= n:
                raise PatternCompileFailure(pattern, "trailing backslash")
            out.append(re.escape(pattern[i]))
        elif char == "[":
            i += 1
            negate = i < n and pattern[i] == "^"
            if negate:
                i += 1
            members = []
            while True:
                if i >= n:
                    raise PatternCompileFailure(pattern, "unterminated character class")
                if pattern[i] == "]" and members:
                    break
                lo, i = _class_char(pattern, i)
                if i < n and pattern[i] == "-":
                    hi, i = _class_char(pattern, i + 1)
                    if hi < lo:
                        raise PatternCompileFailure(pattern, "invalid character range")
                    members.append(f"{re.escape(lo)}-{re.escape(hi)}")
                else:
                    members.append(re.escape(lo))
            body = "".join(members)
            out.append(f"[^{body}]" if negate else f"[{body}]")
        else:
            out.append(re.escape(char))
        i += 1
    return "".join(out)


def path_match(pattern: str, name: str) -> bool:
    """
    Match ``name`` against a shell pattern where wildcards never cross ``/``.

    Raises:
        PatternCompileFailure: If the pattern is malformed
    """
    return re.fullmatch(_translate_path_pattern(pattern), name, flags=re.DOTALL) is not None


def familiar_match(pattern: str, ref: Reference) -> bool:
    """
    Match a pattern against the familiar form of a reference.

    The familiar string (``hello-world:latest``) is tried first; for named
    references the familiar repository name (``hello-world``) is tried too.
    """
    if path_match(pattern, familiar_string(ref)):
        return True
    if ref.is_named:
        return path_match(pattern, familiar_name(ref))
    return False


def parse_repo_tag(image_name: str) -> Tuple[str, str]:
    """
    Split an image name into its familiar repository and tag.

    Unparsable names such as ``<none>`` or ``<none>:<none>`` yield empty
    strings; digested names without a tag (``repo@sha256:...``) yield an
    empty tag.

    Args:
        image_name: Image name as recorded in the store

    Returns:
        Tuple of (repository, tag)
    """
    try:
        ref = parse_docker_ref(image_name)
    except ReferenceFormatError:
        return "", ""
    return familiar_name(ref), ref.tag or ""
