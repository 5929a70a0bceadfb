# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Vendor prefix support data.

For every prefixable property: the last version of each browser that still
needed the prefix, and which prefix it used. A browser missing from a rule
never needed a prefix for that property.
"""

from .browsers import Version

WEBKIT = "-webkit-"
MOZ = "-moz-"
MS = "-ms-"
PRESTO = "-o-"

# Emission order for prefixed copies
PREFIX_ORDER: tuple[str, ...] = (WEBKIT, MOZ, MS, PRESTO)

# Still required by every released version
ALL: Version = (999,)

PrefixRule = dict[str, tuple[Version, str]]

_ANIMATION: PrefixRule = {
    "chrome": ((42,), WEBKIT),
    "safari": ((8,), WEBKIT),
    "ios_saf": ((8, 4), WEBKIT),
    "opera": ((29,), WEBKIT),
    "android": ((4, 4, 4), WEBKIT),
    "firefox": ((15,), MOZ),
}

_TRANSITION: PrefixRule = {
    "chrome": ((25,), WEBKIT),
    "safari": ((6,), WEBKIT),
    "ios_saf": ((6, 1), WEBKIT),
    "android": ((4, 3), WEBKIT),
    "opera": ((12,), PRESTO),
    "firefox": ((15,), MOZ),
}

_TRANSFORM: PrefixRule = {
    "chrome": ((35,), WEBKIT),
    "safari": ((8,), WEBKIT),
    "ios_saf": ((8, 4), WEBKIT),
    "opera": ((22,), WEBKIT),
    "android": ((4, 4, 4), WEBKIT),
    "firefox": ((15,), MOZ),
    "ie": ((9,), MS),
}

_TRANSFORM_3D: PrefixRule = {
    "chrome": ((35,), WEBKIT),
    "safari": ((8,), WEBKIT),
    "ios_saf": ((8, 4), WEBKIT),
    "opera": ((22,), WEBKIT),
    "android": ((4, 4, 4), WEBKIT),
    "firefox": ((15,), MOZ),
}

_BORDER_RADIUS: PrefixRule = {
    "chrome": ((4,), WEBKIT),
    "safari": ((4,), WEBKIT),
    "ios_saf": ((3, 2), WEBKIT),
    "android": ((2, 1), WEBKIT),
    "firefox": ((3, 6), MOZ),
}

_BOX_SHADOW: PrefixRule = {
    "chrome": ((9,), WEBKIT),
    "safari": ((5,), WEBKIT),
    "ios_saf": ((4, 3), WEBKIT),
    "android": ((3,), WEBKIT),
    "firefox": ((3, 6), MOZ),
}

_BOX_SIZING: PrefixRule = {
    "chrome": ((9,), WEBKIT),
    "safari": ((5,), WEBKIT),
    "ios_saf": ((4, 3), WEBKIT),
    "android": ((3,), WEBKIT),
    "firefox": ((28,), MOZ),
}

_USER_SELECT: PrefixRule = {
    "chrome": ((53,), WEBKIT),
    "safari": (ALL, WEBKIT),
    "ios_saf": (ALL, WEBKIT),
    "opera": ((40,), WEBKIT),
    "android": ((4, 4, 4), WEBKIT),
    "firefox": ((68,), MOZ),
    "ie": ((11,), MS),
    "edge": ((18,), MS),
}

_APPEARANCE: PrefixRule = {
    "chrome": ((83,), WEBKIT),
    "safari": ((15, 3), WEBKIT),
    "ios_saf": ((15, 3), WEBKIT),
    "opera": ((69,), WEBKIT),
    "android": ((83,), WEBKIT),
    "edge": ((83,), WEBKIT),
    "firefox": ((79,), MOZ),
}

_HYPHENS: PrefixRule = {
    "safari": ((16, 6), WEBKIT),
    "ios_saf": ((16, 6), WEBKIT),
    "firefox": ((42,), MOZ),
    "ie": ((11,), MS),
    "edge": ((18,), MS),
}

_COLUMNS: PrefixRule = {
    "chrome": ((49,), WEBKIT),
    "safari": ((8,), WEBKIT),
    "ios_saf": ((8, 4), WEBKIT),
    "opera": ((36,), WEBKIT),
    "android": ((4, 4, 4), WEBKIT),
    "firefox": ((51,), MOZ),
}

_FILTER: PrefixRule = {
    "chrome": ((52,), WEBKIT),
    "safari": ((9,), WEBKIT),
    "ios_saf": ((9, 3), WEBKIT),
    "opera": ((39,), WEBKIT),
    "android": ((4, 4, 4), WEBKIT),
}

_BACKDROP_FILTER: PrefixRule = {
    "safari": ((17, 6), WEBKIT),
    "ios_saf": ((17, 6), WEBKIT),
}

_MASK: PrefixRule = {
    "chrome": ((119,), WEBKIT),
    "edge": ((119,), WEBKIT),
    "opera": ((105,), WEBKIT),
    "android": ((119,), WEBKIT),
    "safari": ((15, 3), WEBKIT),
    "ios_saf": ((15, 3), WEBKIT),
}

_CLIP_PATH: PrefixRule = {
    "chrome": ((54,), WEBKIT),
    "safari": ((13, 1), WEBKIT),
    "ios_saf": ((13, 7), WEBKIT),
    "opera": ((41,), WEBKIT),
    "android": ((4, 4, 4), WEBKIT),
}

_FONT_FEATURE_SETTINGS: PrefixRule = {
    "chrome": ((47,), WEBKIT),
    "opera": ((34,), WEBKIT),
    "android": ((4, 4, 4), WEBKIT),
    "firefox": ((33,), MOZ),
}

_TAB_SIZE: PrefixRule = {
    "firefox": ((90,), MOZ),
    "opera": ((12,), PRESTO),
}

_TEXT_SIZE_ADJUST: PrefixRule = {
    "ios_saf": (ALL, WEBKIT),
    "edge": ((18,), MS),
}


def _family(rule: PrefixRule, *names: str) -> dict[str, PrefixRule]:
    return {name: rule for name in names}


PROPERTIES: dict[str, PrefixRule] = {
    **_family(
        _ANIMATION,
        "animation",
        "animation-name",
        "animation-duration",
        "animation-timing-function",
        "animation-delay",
        "animation-iteration-count",
        "animation-direction",
        "animation-fill-mode",
        "animation-play-state",
    ),
    **_family(
        _TRANSITION,
        "transition",
        "transition-property",
        "transition-duration",
        "transition-timing-function",
        "transition-delay",
    ),
    **_family(_TRANSFORM, "transform", "transform-origin"),
    **_family(
        _TRANSFORM_3D,
        "transform-style",
        "perspective",
        "perspective-origin",
        "backface-visibility",
    ),
    **_family(
        _BORDER_RADIUS,
        "border-radius",
        "border-top-left-radius",
        "border-top-right-radius",
        "border-bottom-right-radius",
        "border-bottom-left-radius",
    ),
    "box-shadow": _BOX_SHADOW,
    "box-sizing": _BOX_SIZING,
    "user-select": _USER_SELECT,
    "appearance": _APPEARANCE,
    "hyphens": _HYPHENS,
    **_family(
        _COLUMNS,
        "columns",
        "column-count",
        "column-gap",
        "column-rule",
        "column-rule-color",
        "column-rule-style",
        "column-rule-width",
        "column-width",
        "column-span",
        "column-fill",
    ),
    "filter": _FILTER,
    "backdrop-filter": _BACKDROP_FILTER,
    **_family(
        _MASK,
        "mask",
        "mask-image",
        "mask-size",
        "mask-position",
        "mask-repeat",
        "mask-origin",
        "mask-clip",
        "mask-composite",
    ),
    "clip-path": _CLIP_PATH,
    "font-feature-settings": _FONT_FEATURE_SETTINGS,
    "tab-size": _TAB_SIZE,
    "text-size-adjust": _TEXT_SIZE_ADJUST,
}

AT_RULES: dict[str, PrefixRule] = {
    "keyframes": _ANIMATION,
}

# First version of each browser that understood @keyframes, prefixed or not.
# Declarations inside keyframes only need prefixes from these versions on.
KEYFRAMES_SINCE: dict[str, Version] = {
    "android": (2, 1),
    "chrome": (4,),
    "edge": (12,),
    "firefox": (5,),
    "ie": (10,),
    "ios_saf": (3, 2),
    "opera": (12,),
    "safari": (4,),
}
