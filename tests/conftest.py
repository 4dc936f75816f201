"""
Shared fixtures.

The preset networks below are small, well-known reaction networks used to
exercise the parser and both simulators.
"""

import pytest

PRESETS = {
    # The winner transforms the loser into a copy of itself.
    "rock_paper_scissors": """
        r=50;
        p=50;
        s=50;
        r+p->2p;
        p+s->2s;
        s+r->2r;
        """,
    # a is the prey and b is the predator.
    "predator_prey": """
        a=100;
        b=100;
        a+b->2b:0.005;
        a->2a;
        b->;
        """,
    # Draw a marble, put two of the same color back.
    "polya": """
        A = 1;
        B = 1;
        A -> 2A;
        B -> 2B;
        """,
    "rpsls": """
        a = 100;
        b = 100;
        c = 100;
        d = 100;
        e = 100;
        a+b->2a;
        b+c->2b;
        c+d->2c;
        d+e->2d;
        e+a->2e;
        a+d->2a;
        b+e->2b;
        c+a->2c;
        d+b->2d;
        e+c->2e;
        """,
    # Decides which of A and B is more abundant.
    "majority": """
        A = 30;
        B = 20;
        2A + B -> 3A;
        A + 2B -> 3B;
        """,
    "majority_catalyzed": """
        A = 5120;
        B = 4880;
        C = 100;
        D = 100;
        2A + B + C -> 3A + C;
        A + 2B + D -> 3B + D;
        C -> D : 1000000000;
        D -> C : 1000000000;
        """,
    # C approaches A * B.
    "multiply": """
        A = 30;
        B = 20;
        C = 0;
        A + B -> A + B + C;
        C ->;
        """,
    "equilibrium": """
        A = 10000;
        B = 10000;
        C = 10000;
        D = 10000;
        A + 2B -> 4C + 3D;
        4C + 3D -> A + 2B;
        """,
    # Species B..L are only introduced by reactions.
    "chain": """
        A = 100;
        A -> B;
        B -> C;
        C -> D;
        D -> E;
        E -> F;
        F -> G;
        G -> H;
        H -> I;
        I -> J;
        J -> K;
        K -> L;
        """,
    "immigration": """
        ga = 1;
        ->ga:0.00001;
        ->gb:0.00001;
        ga+gb->gab;
        """,
}


@pytest.fixture(params=sorted(PRESETS))
def preset_text(request):
    """Each preset network description in turn."""
    return PRESETS[request.param]


@pytest.fixture
def majority_text():
    return PRESETS["majority"]
