"""
Tests for inner_transport.cli module.
"""
import json

from inner_transport.cli import build_parser, main


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.kernel == 'si'
        assert args.cells == 20
        assert args.workers == 1
        assert args.max_iters is None


class TestMain:
    def test_list_kernels(self, capsys):
        assert main(['--list-kernels']) == 0
        out = capsys.readouterr().out
        assert "livolant" in out and "KrylovIteration" in out

    def test_slab_run_writes_output(self, tmp_path, capsys):
        path = tmp_path / "slab.json"
        status = main(['--kernel', 'gmres', '--cells', '8', '--angles', '4',
                       '--tolerance', '1e-8', '-o', str(path)])
        assert status == 0
        report = json.loads(path.read_text())
        assert report['kernel_name'].startswith("GMRES")
        assert len(report['phi']) == 2
        assert report['settings']['tolerance'] == 1e-8
        assert "Group Sweep" in capsys.readouterr().out
