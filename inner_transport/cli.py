"""
CLI entry point for the within-group inner solvers.

Usage:
    python -m inner_transport.cli --list-kernels       # Show available kernels
    python -m inner_transport.cli --validate           # Run verification benchmarks
    python -m inner_transport.cli --kernel gmres --cells 40 --angles 8
    python -m inner_transport.cli --kernel livolant --workers 2 -o slab.json
"""
import argparse
import json
import sys


def build_parser():
    parser = argparse.ArgumentParser(
        description='Within-group inner iterations on a two-group slab benchmark',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m inner_transport.cli --list-kernels          Show available kernels
  python -m inner_transport.cli --validate              Verification report
  python -m inner_transport.cli --kernel gmres          Slab solve with GMRES
        """,
    )

    parser.add_argument('--kernel', '-k', default='si',
                        help='Inner solver: si, livolant, gmres (default: si)')
    parser.add_argument('--cells', type=int, default=20, help='Slab cells')
    parser.add_argument('--angles', type=int, default=8, help='Gauss-Legendre order')
    parser.add_argument('--incident', type=float, default=0.0,
                        help='Isotropic incident angular flux on both faces')
    parser.add_argument('--max-iters', type=int, default=None, help='Inner iteration cap')
    parser.add_argument('--tolerance', type=float, default=None, help='Inner tolerance')
    parser.add_argument('--workers', type=int, default=1,
                        help='Worker processes for the group pass (0 = all cores)')
    parser.add_argument('--output', '-o', type=str, default=None, help='Output JSON file')
    parser.add_argument('--list-kernels', action='store_true', help='List available kernels')
    parser.add_argument('--validate', action='store_true', help='Run verification benchmarks')
    parser.add_argument('--verbose', '-v', action='store_true', help='Per-iteration output')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.list_kernels:
        from .kernels import list_kernels
        print("Available kernels:")
        print(f"  {'Name':<18} {'Class'}")
        print(f"  {'-'*18} {'-'*18}")
        for name, cls_name in list_kernels():
            print(f"  {name:<18} {cls_name}")
        return 0

    if args.validate:
        from .validation.benchmarks import run_verification
        return run_verification(verbose=True, report_path=args.output)

    from .parallel import solve_groups
    from .settings import InnerSettings
    from .validation.benchmarks import build_slab_problem

    params = {'print_out': args.verbose}
    if args.max_iters is not None:
        params['inner_max_iters'] = args.max_iters
    if args.tolerance is not None:
        params['inner_tolerance'] = args.tolerance
    settings = InnerSettings.from_dict(params)

    context = build_slab_problem(
        n_cells=args.cells, n_angles=args.angles, incident=args.incident, use_numba=True,
    )
    result = solve_groups(
        context,
        kernel=args.kernel,
        settings=settings,
        n_workers=None if args.workers == 0 else args.workers,
    )
    result.summary()

    if args.output:
        report = result.to_dict()
        report['settings'] = settings.to_dict()
        report['phi'] = context.state.phi.tolist()
        with open(args.output, 'w') as f:
            json.dump(report, f, indent=2)
        print(f"\nResults saved to {args.output}")

    return 0 if result.all_converged else 1


if __name__ == '__main__':
    sys.exit(main())
