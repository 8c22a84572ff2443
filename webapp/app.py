from flask import Flask, request, jsonify, redirect, url_for
import dataclasses
import logging
import sys
from pathlib import Path

# Ensure repository root is on sys.path for package import
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from wallcalc.bridges import (
    bridge_criticality,
    recommended_bridges,
    u_value_with_bridges,
    wall_configuration,
)
from wallcalc.core import analyze
from wallcalc.dataclasses import Category, Climate, Material, WallAssembly, WallLayer
from wallcalc.errors import InvalidInputError
from wallcalc.materials import all_materials, by_name, categories
from wallcalc.optimization import OptimizationInput, comparison_points, optimize
from wallcalc.storage import AssemblyStore, assembly_to_dict
from wallcalc.validation import validate_assembly
from wallcalc.visualization import ColorScheme, visualization_data

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.setdefault("STORE_PATH", None)


def _store() -> AssemblyStore:
    return AssemblyStore(app.config["STORE_PATH"])


def _material(entry, catalog):
    if isinstance(entry, str):
        if entry not in catalog:
            raise KeyError(f"Unknown material {entry!r}")
        return catalog[entry]
    return Material(
        name=str(entry.get('name', 'Custom')),
        lambda_=float(entry['lambda_']),
        rho=float(entry.get('rho', 0.0)),
        c=float(entry.get('c', 0.0)),
        mu=float(entry.get('mu', 0.0)),
        category=Category(entry.get('category', 'other')),
        price_per_m3=float(entry.get('price_per_m3', 0.0)),
        is_air_gap=bool(entry.get('is_air_gap', False)),
        fixed_resistance=float(entry['fixed_resistance']) if entry.get('fixed_resistance') is not None else None,
    )


def _assembly_from_json(data) -> WallAssembly:
    """Layers reference catalog materials by name or carry an inline material."""
    layers_in = data.get('layers', [])
    if not isinstance(layers_in, list):
        raise InvalidInputError('layers must be a list')
    catalog = by_name(all_materials())
    layers = []
    for idx, L in enumerate(layers_in):
        try:
            layers.append(WallLayer(_material(L['material'], catalog), float(L['thickness_mm'])))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f'Invalid layer at index {idx}: {e}') from e
    cl = data.get('climate', {})
    defaults = Climate()
    return WallAssembly(
        layers=layers,
        Rsi=float(data.get('Rsi', 0.13)),
        Rse=float(data.get('Rse', 0.04)),
        climate=Climate(
            theta_i=float(cl.get('theta_i', defaults.theta_i)),
            phi_i=float(cl.get('phi_i', defaults.phi_i)),
            theta_e=float(cl.get('theta_e', defaults.theta_e)),
            phi_e=float(cl.get('phi_e', defaults.phi_e)),
        ),
        name=str(data.get('name', '')),
    )


def _bad_request(e):
    logger.info('Rejected %s: %s', request.path, e)
    return jsonify({'ok': False, 'error': str(e)}), 400


@app.errorhandler(InvalidInputError)
def handle_invalid_input(e):
    return _bad_request(e)


@app.route('/', methods=['GET'])
def index():
    return jsonify({
        'ok': True,
        'usage': 'POST JSON to /analyze, /validate, /bridges, /visualization or /optimize',
        'example': {
            'layers': [
                {'material': 'Solid brick', 'thickness_mm': 300},
                {'material': 'EPS polystyrene 15 kg/m3', 'thickness_mm': 140},
            ],
            'Rsi': 0.13,
            'Rse': 0.04,
            'climate': {'theta_i': 20, 'phi_i': 50, 'theta_e': -15, 'phi_e': 80},
        },
    })


@app.route('/analyze', methods=['POST'])
def analyze_api():
    assembly = _assembly_from_json(request.get_json(force=True))
    if not assembly.layers:
        return _bad_request('No layers provided')
    return jsonify({'ok': True, 'result': analyze(assembly)})


@app.route('/validate', methods=['POST'])
def validate_api():
    assembly = _assembly_from_json(request.get_json(force=True))
    findings = [dataclasses.asdict(f) for f in validate_assembly(assembly)]
    return jsonify({'ok': True, 'findings': findings})


@app.route('/bridges', methods=['POST'])
def bridges_api():
    data = request.get_json(force=True)
    assembly = _assembly_from_json(data)
    bridges = recommended_bridges(
        assembly,
        perimeter=float(data.get('perimeter', 40.0)),
        floor_area=float(data.get('floor_area', 100.0)),
    )
    return jsonify({
        'ok': True,
        'configuration': wall_configuration(assembly).value,
        'bridges': [dataclasses.asdict(b) for b in bridges.bridges],
        'total_heat_loss': bridges.total_heat_loss,
        'u_correction': bridges.u_correction,
        'u_with_bridges': u_value_with_bridges(assembly, bridges),
        'criticality': bridge_criticality(assembly, bridges).value,
    })


@app.route('/visualization', methods=['POST'])
def visualization_api():
    data = request.get_json(force=True)
    assembly = _assembly_from_json(data)
    scheme = ColorScheme(data.get('scheme', ColorScheme.BLUE_RED.value))
    return jsonify({'ok': True, 'result': dataclasses.asdict(visualization_data(assembly, scheme))})


@app.route('/optimize', methods=['POST'])
def optimize_api():
    data = request.get_json(force=True) or {}
    result = optimize(OptimizationInput.from_dict(data))
    return jsonify({
        'ok': True,
        'optimal_thickness': result.optimal_thickness,
        'optimum': dataclasses.asdict(result.optimum),
        'baseline_heat_loss': result.baseline_heat_loss,
        'baseline_heating_cost': result.baseline_heating_cost,
        'recommendation': result.recommendation,
        'recommendations': [{'kind': r.kind.value, 'params': r.params, 'text': r.text}
                            for r in result.recommendations],
        'comparison': [dataclasses.asdict(p) for p in comparison_points(result)],
        'data_points': [dataclasses.asdict(p) for p in result.data_points],
    })


@app.route('/materials', methods=['GET'])
def materials_api():
    mats = all_materials()
    q = request.args.get('q')
    if q:
        ql = q.lower()
        mats = [m for m in mats if ql in m.name.lower()]
    category = request.args.get('category')
    if category:
        known = {c.value for c in categories()}
        if category not in known:
            return _bad_request(f'Unknown category {category!r}; expected one of {sorted(known)}')
        mats = [m for m in mats if m.category.value == category]
    return jsonify({'ok': True, 'materials': [dataclasses.asdict(m) for m in mats]})


@app.route('/assemblies', methods=['GET', 'POST'])
def assemblies_api():
    store = _store()
    if request.method == 'GET':
        return jsonify({'ok': True, 'assemblies': store.list()})
    data = request.get_json(force=True)
    name = str(data.get('name') or '').strip()
    if not name:
        return _bad_request('Assembly name is required')
    store.save(_assembly_from_json(data), name)
    return jsonify({'ok': True, 'name': name}), 201


@app.route('/assemblies/<name>', methods=['GET', 'DELETE'])
def assembly_api(name):
    store = _store()
    if request.method == 'DELETE':
        if not store.delete(name):
            return jsonify({'ok': False, 'error': f'No assembly named {name!r}'}), 404
        return jsonify({'ok': True})
    try:
        assembly = store.load(name)
    except KeyError as e:
        logger.warning('Cannot load assembly %r: %s', name, e)
        return jsonify({'ok': False, 'error': f'Assembly {name!r} refers to a missing material: {e}'}), 409
    if assembly is None:
        return jsonify({'ok': False, 'error': f'No assembly named {name!r}'}), 404
    return jsonify({'ok': True, 'assembly': assembly_to_dict(assembly, by_name(all_materials()))})


@app.errorhandler(405)
def handle_405(e):
    # If someone POSTs to '/', redirect to the usage page
    if request.path == '/':
        return redirect(url_for('index'), code=303)
    return jsonify({'ok': False, 'error': 'Method Not Allowed', 'hint': 'GET / for usage'}), 405


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True)
