"""Shared Hypothesis strategies for framing tests."""

from __future__ import annotations

from hypothesis import strategies as st

json_scalars = (
    st.none()
    | st.booleans()
    | st.integers(min_value=-(2**63), max_value=2**63)
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text()
)

json_values = st.recursive(
    json_scalars,
    lambda children: (
        st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=8), children, max_size=4)
    ),
    max_leaves=12,
)


@st.composite
def chunked(draw: st.DrawFn, payload: bytes) -> list[bytes]:
    """Split *payload* into consecutive chunks at arbitrary boundaries."""
    if not payload:
        return [payload]
    cuts = draw(
        st.lists(st.integers(min_value=1, max_value=len(payload) - 1), max_size=8, unique=True)
        if len(payload) > 1
        else st.just([])
    )
    bounds = [0, *sorted(cuts), len(payload)]
    return [payload[a:b] for a, b in zip(bounds, bounds[1:], strict=False)]
