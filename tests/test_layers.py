from analyst.layers import TileLayer, key_path, set_layer_url, tile_url


def test_key_path():
    assert key_path("abc") == "abc"
    assert key_path("abc", "xyz") == "xyz/abc"


def test_tile_url_defaults():
    assert tile_url("http://tiles.test", "abc") == (
        "http://tiles.test/single/abc/{z}/{x}/{y}.png"
        "?which=AVERAGE&timeLimit=3600&showPoints=false&showIso=true"
    )


def test_tile_url_comparison_and_flags():
    url = tile_url(
        "http://tiles.test",
        "abc",
        "xyz",
        connectivity_type="BEST_CASE",
        time_limit=1800,
        show_points=True,
        show_iso=False,
    )
    assert url == (
        "http://tiles.test/single/xyz/abc/{z}/{x}/{y}.png"
        "?which=BEST_CASE&timeLimit=1800&showPoints=true&showIso=false"
    )


def test_set_layer_url_redraws():
    layer = TileLayer("old", opacity=0.5)
    assert set_layer_url(layer, "new") is layer
    assert layer.url == "new"
    assert layer.redraws == 1
    assert layer.options == {"opacity": 0.5}


def test_set_layer_url_prefers_set_url(mocker):
    layer = mocker.Mock(spec=["url", "set_url"])
    set_layer_url(layer, "new")
    layer.set_url.assert_called_once_with("new")
