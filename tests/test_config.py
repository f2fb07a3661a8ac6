from ChaosTable.config import Settings, load_settings


def _clear_env(monkeypatch):
    for key in ("CHAOSTABLE_MAX_POOL_SIZE", "CHAOSTABLE_RNG_SEED", "CHAOSTABLE_ENV"):
        monkeypatch.delenv(key, raising=False)


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    s = load_settings()
    assert s.env == "dev"
    assert s.rng_seed is None
    assert s.max_pool_size == 8
    assert s.zero_weight_batch_size == 5
    assert s.coins_per_weight_unit == 100
    assert s.roll_history_size == 50
    assert s.logging_file == "NONE"


def test_toml_source(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    (tmp_path / "config.toml").write_text(
        "[app]\nenv = \"prod\"\n\n"
        "[rules]\nrng_seed = 1234\nmax_pool_size = 6\n\n"
        "[logging]\nlevel = \"debug\"\nconsole = false\nto_file = true\n"
    )
    s = Settings()
    assert s.env == "prod"
    assert s.rng_seed == 1234
    assert s.max_pool_size == 6
    assert s.logging_level == "debug"
    assert s.logging_console == "NONE"
    assert s.logging_file == "DEBUG"


def test_env_overrides_toml(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    (tmp_path / "config.toml").write_text("[rules]\nmax_pool_size = 6\n")
    monkeypatch.setenv("CHAOSTABLE_MAX_POOL_SIZE", "10")
    assert Settings().max_pool_size == 10


def test_init_overrides_everything(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CHAOSTABLE_MAX_POOL_SIZE", "10")
    assert Settings(max_pool_size=3).max_pool_size == 3
