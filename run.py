from poolkeeper import create_app, db
from poolkeeper.models import Entry, Game, Grade, GradeOverride, Pick, Pool, Result, Team

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "Team": Team,
        "Game": Game,
        "Result": Result,
        "Pool": Pool,
        "Entry": Entry,
        "Pick": Pick,
        "Grade": Grade,
        "GradeOverride": GradeOverride,
    }


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
