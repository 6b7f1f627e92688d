import json

import pandas as pd
import pytest

import tally_cruncher.batch as batch
from tally_cruncher.cli import main


@pytest.fixture
def run_dir(tmp_path):

    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    (data_dir / 'r2.csv').write_text(
        'DT;LULA_QT_VOTOS_TOT_ACUMULADO;JAIR_BOLSONARO_QT_VOTOS_TOT_ACUMULADO\n'
        'x;1;2\n'
        'y;30;10\n',
        encoding='utf8',
    )

    tables = {
        'formularios': [{'id': 'f1', 'titulo': 'Survey', 'ativo': True, 'created_at': '2024-01-01'}],
        'perguntas_formulario': [
            {'id': 'q1', 'formulario_id': 'f1', 'ordem': 1, 'texto': 'Agree?', 'tipo': 'multipla_escolha',
             'obrigatoria': True, 'opcoes': ['Yes', 'No', 'Maybe']},
            {'id': 'q2', 'formulario_id': 'f1', 'ordem': 2, 'texto': 'Name', 'tipo': 'texto', 'opcoes': None},
        ],
        'respostas_formulario': [
            {'id': 'r1', 'formulario_id': 'f1', 'created_at': '2024-01-02',
             'respostas': [{'pergunta_id': 'q1', 'resposta': 'Yes'}, {'pergunta_id': 'q2', 'resposta': 'Ana'}]},
            {'id': 'r2', 'formulario_id': 'f1', 'created_at': '2024-01-03',
             'respostas': [{'pergunta_id': 'q1', 'resposta': 'Maybe'}]},
        ],
    }
    (tmp_path / 'forms.json').write_text(json.dumps(tables), encoding='utf8')

    (tmp_path / 'run_config.json').write_text(json.dumps({
        'rounds': {
            '1': {'file': 'missing.csv', 'field_map': {}},
            '2': {'file': 'r2.csv', 'field_map': {}},
        },
        'store': 'json',
        'palette': ['#111111', '#222222'],
    }), encoding='utf8')

    return tmp_path


def test_crunch_round(run_dir):

    run_config = batch.read_run_config(run_dir, quiet=True)
    tally = batch.crunch_round(batch.new_csv_source(run_config), '2', run_config)

    assert [(c.label, c.votes, c.color) for c in tally] == [
        ('Lula', 30, '#111111'),
        ('Jair Bolsonaro', 10, '#222222'),
    ]


def test_crunch_form(run_dir):

    run_config = batch.read_run_config(run_dir, quiet=True)
    form, responses, tallies = batch.crunch_form(batch.new_form_store(run_config), 'f1')

    assert form.title == 'Survey'
    assert len(responses) == 2
    assert list(tallies) == ['q1']
    assert tallies['q1'].counts == {'Yes': 1, 'No': 0, 'Maybe': 1}


def test_analyze_run_dir(run_dir):

    n_errors = batch.analyze_run_dir(run_dir, quiet=True)
    results_dir = run_dir / 'results'

    # round 1 file is missing
    assert n_errors == 1
    errors = pd.read_csv(results_dir / 'error_log.csv')
    assert errors['item'].tolist() == ['round_1']
    assert 'FileNotFoundError' in errors['message'].tolist()[0]

    round_df = pd.read_csv(results_dir / 'elections' / 'round_2.csv')
    assert round_df['label'].tolist() == ['Lula', 'Jair Bolsonaro']
    assert round_df['votes'].tolist() == [30, 10]
    assert round_df['percentage'].tolist() == [75.0, 25.0]

    summary_df = pd.read_csv(results_dir / 'forms' / 'f1_summary.csv')
    assert summary_df['option'].tolist() == ['Yes', 'No', 'Maybe']
    assert summary_df['count'].tolist() == [1, 0, 1]

    series_df = pd.read_csv(results_dir / 'forms' / 'f1_q1.csv')
    assert series_df['label'].tolist() == ['Yes', 'Maybe']
    assert series_df['color'].tolist() == ['#111111', '#222222']


def test_fresh_output_and_empty_error_log(run_dir):

    config_path = run_dir / 'run_config.json'
    config = json.loads(config_path.read_text(encoding='utf8'))
    del config['rounds']['1']
    config_path.write_text(json.dumps(config), encoding='utf8')

    stale = run_dir / 'results' / 'stale.csv'
    stale.parent.mkdir()
    stale.write_text('old', encoding='utf8')

    assert batch.analyze_run_dir(run_dir, fresh_output=True, quiet=True) == 0
    assert not stale.exists()
    assert (run_dir / 'results' / 'error_log_EMPTY.csv').exists()
    assert not (run_dir / 'results' / 'error_log.csv').exists()


def test_no_store(run_dir):

    run_config = batch.read_run_config(run_dir, quiet=True)
    run_config['store'] = 'none'

    assert batch.new_form_store(run_config) is None
    batch.crunch_run(run_config, run_dir, quiet=True)
    assert not (run_dir / 'results' / 'forms').exists()


def test_store_without_key_is_logged(run_dir, monkeypatch):

    monkeypatch.delenv('BACKEND_ANON_KEY', raising=False)

    config_path = run_dir / 'run_config.json'
    config = json.loads(config_path.read_text(encoding='utf8'))
    del config['rounds']['1']
    config['store'] = 'rest'
    config['backend_url'] = 'https://x.supabase.co'
    config_path.write_text(json.dumps(config), encoding='utf8')

    assert batch.analyze_run_dir(run_dir, quiet=True) == 1

    results_dir = run_dir / 'results'
    errors = pd.read_csv(results_dir / 'error_log.csv')
    assert errors['item'].tolist() == ['forms']
    assert errors['cruncher_step'].tolist() == ['new_form_store']
    assert 'backend key required' in errors['message'].tolist()[0]

    assert (results_dir / 'elections' / 'round_2.csv').exists()
    assert not (results_dir / 'forms').exists()


def test_missing_store_file_is_logged(run_dir):

    (run_dir / 'forms.json').unlink()
    run_config = batch.read_run_config(run_dir, quiet=True)
    del run_config['rounds']['1']

    assert batch.crunch_run(run_config, run_dir, quiet=True) == 1

    errors = pd.read_csv(run_dir / 'results' / 'error_log.csv')
    assert errors['cruncher_step'].tolist() == ['new_form_store']
    assert not (run_dir / 'results' / 'error_log_EMPTY.csv').exists()


def test_cli(run_dir, capsys):

    assert main([str(run_dir), '--fresh']) == 1
    out = capsys.readouterr().out
    assert '[1 TOTAL ERRORS]' in out
    assert 'DONE!' in out


def test_cli_bad_path(tmp_path):

    with pytest.raises(RuntimeError):
        main([str(tmp_path / 'missing')])
