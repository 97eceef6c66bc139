from typing import Any, Mapping, Sequence, Union

Options = dict[str, Any]
PointLike = Union[Mapping[str, float], Sequence[float]]
KeyPath = str
