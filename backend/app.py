"""
Derivatives Risk & Insight Engine - Flask Application

Thin JSON wrapper around the risk engine providing endpoints for:
- Full risk snapshots (Greeks, scenario curve, insights)
- Portfolio Greeks only
- Scenario P&L curve only
- Named-scenario stress tests
- A demo book snapshot (DEMO_MODE only)
"""

from flask import Flask, jsonify, request
from flask_cors import CORS
from datetime import datetime
import logging
import os

logging.getLogger("werkzeug").setLevel(logging.WARNING)

from pydantic import ValidationError
from errors import RiskEngineError
from risk_engine import RiskEngine
from scenario_curve import generate_curve, summarize_curve
from demo_data import get_demo_positions, get_demo_reference_price
from validation import BookRequest, SnapshotRequest

app = Flask(__name__)
CORS(app)

logger = logging.getLogger(__name__)

# Demo mode flag (serve the sample book)
DEMO_MODE = os.environ.get('DEMO_MODE', 'false').lower() == 'true'

# Evaluate formula-less instruments (Swap, StructuredProduct) as futures
TREAT_UNSUPPORTED_AS_LINEAR = (
    os.environ.get('TREAT_UNSUPPORTED_AS_LINEAR', 'false').lower() == 'true'
)

risk_engine = RiskEngine(treat_unsupported_as_linear=TREAT_UNSUPPORTED_AS_LINEAR)


def _engine_error(err):
    return jsonify({'success': False, **err.to_dict()}), 422


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'demo_mode': DEMO_MODE,
        'timestamp': datetime.now().isoformat()
    })

@app.route('/api/risk/snapshot', methods=['POST'])
def risk_snapshot():
    """Compute Greeks, scenario curve and insights for a book"""
    try:
        data = request.json or {}
        try:
            validated = SnapshotRequest(**data)
        except ValidationError as ve:
            return jsonify({'success': False, 'error': ve.errors(include_url=False, include_context=False)}), 422

        snapshot = risk_engine.compute_snapshot(
            validated.to_positions(), validated.reference_price,
            validated.curve_range, validated.curve_step,
        )
        return jsonify({
            'success': True,
            'snapshot': snapshot.to_dict(),
        })
    except RiskEngineError as e:
        return _engine_error(e)
    except Exception as e:
        logger.exception("Failed to compute risk snapshot")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500

@app.route('/api/risk/greeks', methods=['POST'])
def portfolio_greeks():
    """Aggregate portfolio Greeks for a book"""
    try:
        data = request.json or {}
        try:
            validated = BookRequest(**data)
        except ValidationError as ve:
            return jsonify({'success': False, 'error': ve.errors(include_url=False, include_context=False)}), 422

        greeks = risk_engine.greeks_aggregator.aggregate(
            validated.to_positions(), validated.reference_price,
        )
        return jsonify({
            'success': True,
            'greeks': greeks.to_dict(),
        })
    except RiskEngineError as e:
        return _engine_error(e)
    except Exception as e:
        logger.exception("Failed to aggregate Greeks")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500

@app.route('/api/risk/curve', methods=['POST'])
def scenario_curve():
    """Generate the P&L-versus-price scenario curve for a book"""
    try:
        data = request.json or {}
        try:
            validated = SnapshotRequest(**data)
        except ValidationError as ve:
            return jsonify({'success': False, 'error': ve.errors(include_url=False, include_context=False)}), 422

        curve = generate_curve(
            validated.to_positions(), validated.reference_price,
            validated.curve_range, validated.curve_step,
            treat_as_linear=TREAT_UNSUPPORTED_AS_LINEAR,
        )
        return jsonify({
            'success': True,
            'curve': [point.to_dict() for point in curve],
            'summary': summarize_curve(curve),
        })
    except RiskEngineError as e:
        return _engine_error(e)
    except Exception as e:
        logger.exception("Failed to generate scenario curve")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500

@app.route('/api/risk/stress', methods=['POST'])
def stress_tests():
    """Run the named macro stress scenarios against a book"""
    try:
        data = request.json or {}
        try:
            validated = BookRequest(**data)
        except ValidationError as ve:
            return jsonify({'success': False, 'error': ve.errors(include_url=False, include_context=False)}), 422

        results = risk_engine.run_stress_tests(
            validated.to_positions(), validated.reference_price,
        )
        return jsonify({
            'success': True,
            'scenarios': [result.to_dict() for result in results],
            'expected_pnl': round(sum(result.weighted_pnl for result in results), 2),
        })
    except RiskEngineError as e:
        return _engine_error(e)
    except Exception as e:
        logger.exception("Failed to run stress tests")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500

@app.route('/api/risk/demo', methods=['GET'])
def demo_snapshot():
    """Risk snapshot of the demo book"""
    if not DEMO_MODE:
        return jsonify({'success': False, 'error': 'Demo mode is disabled'}), 404
    try:
        snapshot = risk_engine.compute_snapshot(
            get_demo_positions(), get_demo_reference_price(),
        )
        return jsonify({
            'success': True,
            'reference_price': get_demo_reference_price(),
            'positions': [p.to_dict() for p in get_demo_positions()],
            'snapshot': snapshot.to_dict(),
        })
    except Exception as e:
        logger.exception("Failed to compute demo snapshot")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)

    port = int(os.environ.get('RISK_ENGINE_PORT', '5055'))
    debug_mode = os.environ.get('DEBUG', 'false').lower() == 'true'

    print("Starting Risk Engine API...")
    print(f"Available at: http://127.0.0.1:{port}")
    if DEMO_MODE:
        print("DEMO MODE: /api/risk/demo serves the sample book")

    # Local-only bind
    app.run(debug=debug_mode, host='127.0.0.1', port=port)
