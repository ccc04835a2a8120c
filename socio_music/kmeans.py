from sklearn.cluster import KMeans


def make_kmeans(n_clusters: int, random_state: int, n_init: int = 10) -> KMeans:
    """
    Zweck:
    - Erstellt ein KMeans-Objekt mit festem Seed.

    Parameter:
    - n_clusters: Anzahl Cluster
    - random_state: sorgt für reproduzierbare Cluster-Ergebnisse
    - n_init: mehrere Starts, bestes Ergebnis (kleinste Inertia) gewinnt
    """
    return KMeans(n_clusters=n_clusters, n_init=n_init, random_state=random_state)
