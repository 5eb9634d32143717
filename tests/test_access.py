from access import AccessGate, normalize_address


def test_normalize_address_strips_ipv4_mapped_prefix():
    assert normalize_address("::ffff:192.168.1.20") == "192.168.1.20"
    assert normalize_address(" 10.0.0.1 ") == "10.0.0.1"
    assert normalize_address("::1") == "::1"
    assert normalize_address(None) == ""


def test_password_disabled_accepts_everything():
    gate = AccessGate()
    assert not gate.has_password
    assert gate.check_password(None)
    assert gate.check_password("anything")


def test_password_enabled():
    gate = AccessGate(password="hunter2")
    assert gate.check_password("hunter2")
    assert not gate.check_password("hunter3")
    assert not gate.check_password("")
    assert not gate.check_password(None)


def test_empty_allow_list_accepts_everyone():
    assert AccessGate().is_address_allowed("203.0.113.9")


def test_allow_list():
    gate = AccessGate(allowed_ips=["10.0.0.1", " ::ffff:10.0.0.2", ""])
    assert gate.is_address_allowed("10.0.0.1")
    assert gate.is_address_allowed("::ffff:10.0.0.1")
    assert gate.is_address_allowed("10.0.0.2")
    assert not gate.is_address_allowed("10.0.0.3")
    assert not gate.is_address_allowed(None)


def test_client_address_uses_first_forwarded_hop():
    gate = AccessGate()
    headers = {"x-forwarded-for": "::ffff:198.51.100.7, 10.0.0.1"}
    assert gate.client_address(headers, "10.0.0.1") == "198.51.100.7"
    assert gate.client_address({}, "::ffff:127.0.0.1") == "127.0.0.1"


def test_client_address_ignores_forwarded_for_when_proxy_untrusted():
    gate = AccessGate(trust_proxy=False)
    assert gate.client_address({"x-forwarded-for": "198.51.100.7"}, "10.0.0.1") == "10.0.0.1"
