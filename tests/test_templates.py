from ubuntu_automation.core.templates import TemplateRenderer


def render_proxy(renderer, **overrides):
    context = dict(
        domain="panel.example.com",
        label="",
        protocol="http",
        target="127.0.0.1:9000",
        ip="0.0.0.0",
        port=80,
        log_dir="/var/log/nginx",
        max_body_size="20m",
        timeout=60,
        ssl_directives=False,
        deny_hidden=True,
    )
    context.update(overrides)
    return renderer.render("nginx_proxy.conf.j2", **context)


def test_proxy_without_backend_tls():
    text = render_proxy(TemplateRenderer())
    assert "listen 0.0.0.0:80;" in text
    assert "proxy_pass http://127.0.0.1:9000;" in text
    assert "proxy_ssl_verify" not in text
    assert "location ~ /\\." in text
    assert 'proxy_set_header Connection "upgrade";' in text


def test_proxy_with_backend_tls_and_no_hidden_block():
    text = render_proxy(
        TemplateRenderer(), protocol="https", ssl_directives=True, deny_hidden=False, label="Webmin"
    )
    assert "proxy_pass https://127.0.0.1:9000;" in text
    assert "proxy_ssl_verify off;" in text
    assert "proxy_ssl_server_name on;" in text
    assert "deny all;" not in text
    assert "(Webmin)" in text.splitlines()[0]


def test_generated_at_can_be_fixed():
    text = render_proxy(TemplateRenderer(), generated_at="2025-01-01 00:00:00")
    assert "Generated by ubuntu-automation on 2025-01-01 00:00:00" in text


def test_mariadb_config():
    text = TemplateRenderer().render(
        "mariadb.cnf.j2",
        pid_file="/run/mysqld/mysqld.pid",
        socket="/run/mysqld/mysqld.sock",
        datadir="/var/lib/mysql",
        port=3306,
        bind_address="127.0.0.1",
        buffer_pool_size="2G",
        error_log="/var/log/mysql/error.log",
    )
    assert "[mariadb]" in text
    assert "innodb_buffer_pool_size = 2G" in text
    assert "bind-address = 127.0.0.1" in text
    assert "socket = /run/mysqld/mysqld.sock" in text


def test_write_creates_parents_and_mode(tmp_path):
    target = tmp_path / "a" / "b" / "entrypoint.sh"
    TemplateRenderer().write("mtasa_entrypoint.sh.j2", target, mode=0o755, user="mtasa")
    assert target.exists()
    assert target.stat().st_mode & 0o777 == 0o755


def test_policy_rc_refuses_service_start():
    assert TemplateRenderer().render("policy-rc.d.j2") == "#!/bin/sh\nexit 101\n"


def test_lxd_preseed_is_yaml():
    import yaml

    text = TemplateRenderer().render("lxd_preseed.yaml.j2", https_address="192.168.0.230:9999", bridge="lxdbr0")
    data = yaml.safe_load(text)
    assert data["config"]["core.https_address"] == "192.168.0.230:9999"


def test_context_may_use_name_and_target_keys(tmp_path):
    renderer = TemplateRenderer()
    context = dict(ip="0.0.0.0", port=80, root="/var/www/html", name="default", log_dir="/var/log/nginx")

    text = renderer.render("nginx_default.conf.j2", **context)
    assert "access_log /var/log/nginx/default.access.log;" in text

    target = renderer.write("nginx_default.conf.j2", tmp_path / "default", **context)
    assert target.read_text() == text
