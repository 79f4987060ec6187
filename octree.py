from aabb import AABB


# Leaves at this depth keep a flat bucket of triangles instead of splitting
DEFAULT_MAX_DEPTH = 6


class Octree:
    """
    Octree over triangles, stored as flat arrays indexed by node number.

    Every node has a box (node_aabbs), a list of child node indices
    (node_children, empty for a leaf) and a list of triangle indices assigned
    to it (node_triangles). Triangles and their boxes live in the flat
    `triangles` / `triangle_aabbs` stores; nodes only hold integer indices.
    Node 0 is the root. Nodes are appended and never removed.

    A leaf holds at most one triangle. When a second triangle lands on an
    occupied leaf the leaf is split into 8 octants and both triangles are
    pushed down. A triangle overlapping several octants is stored in each.
    Splitting stops at `max_depth`, or when the occupants cannot be told
    apart by their boxes inside the leaf; such leaves keep a bucket.
    """

    def __init__(self, min_x, max_x, min_y, max_y, min_z, max_z, max_depth=DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth
        self.node_aabbs = [AABB(min_x, max_x, min_y, max_y, min_z, max_z)]
        self.node_children = [[]]
        self.node_triangles = [[]]
        self.node_depths = [0]
        self.triangles = []
        self.triangle_aabbs = []
        self.subdivisions = 0

    @classmethod
    def from_aabb(cls, aabb, max_depth=DEFAULT_MAX_DEPTH):
        (min_x, min_y, min_z), (max_x, max_y, max_z) = aabb.min_bound, aabb.max_bound
        return cls(min_x, max_x, min_y, max_y, min_z, max_z, max_depth)

    @property
    def bounds(self):
        return self.node_aabbs[0]

    @property
    def node_count(self):
        return len(self.node_aabbs)

    @property
    def triangle_count(self):
        return len(self.triangles)

    def is_leaf(self, node_index):
        return not self.node_children[node_index]

    def triangle(self, index):
        """Triangle stored at `index`; any index outside the store is a corrupt build."""
        if not 0 <= index < len(self.triangles):
            raise IndexError("Triangle index {} outside octree store of {}".format(
                index, len(self.triangles)))
        return self.triangles[index]

    def insert_triangle(self, triangle):
        """
        Add a triangle to the tree.

        Returns the triangle's index in the flat store. A triangle entirely
        outside the root box is stored but reachable from no node.
        """
        triangle_index = len(self.triangles)
        triangle_aabb = AABB.from_triangle(triangle)
        self.triangles.append(triangle)
        self.triangle_aabbs.append(triangle_aabb)
        self._insert(0, triangle_index, triangle_aabb)
        return triangle_index

    def _insert(self, node_index, triangle_index, triangle_aabb):
        node_aabb = self.node_aabbs[node_index]
        if not node_aabb.intersects(triangle_aabb):
            return False

        children = self.node_children[node_index]
        if children:
            placed = False
            for child_index in children:
                placed = self._insert(child_index, triangle_index, triangle_aabb) or placed
            return placed

        occupants = self.node_triangles[node_index]
        if not occupants or not self._should_subdivide(node_index, triangle_aabb):
            occupants.append(triangle_index)
            return True

        self._subdivide(node_index)
        self.node_triangles[node_index] = []
        for displaced_index in occupants:
            self._insert(node_index, displaced_index, self.triangle_aabbs[displaced_index])
        return self._insert(node_index, triangle_index, triangle_aabb)

    def _should_subdivide(self, node_index, triangle_aabb):
        if self.node_depths[node_index] >= self.max_depth:
            return False
        node_aabb = self.node_aabbs[node_index]
        clipped = triangle_aabb.clipped_to(node_aabb)
        for occupant_index in self.node_triangles[node_index]:
            if self.triangle_aabbs[occupant_index].clipped_to(node_aabb) != clipped:
                return True
        return False

    def _subdivide(self, node_index):
        depth = self.node_depths[node_index] + 1
        children = []
        for octant in self.node_aabbs[node_index].octants():
            children.append(len(self.node_aabbs))
            self.node_aabbs.append(octant)
            self.node_children.append([])
            self.node_triangles.append([])
            self.node_depths.append(depth)
        self.node_children[node_index] = children
        self.subdivisions += 1

    def leaves_containing(self, aabb):
        """Indices of all leaves whose box intersects `aabb`."""
        leaves = []
        stack = [0]
        while stack:
            node_index = stack.pop()
            if not self.node_aabbs[node_index].intersects(aabb):
                continue
            children = self.node_children[node_index]
            if children:
                stack.extend(children)
            else:
                leaves.append(node_index)
        return leaves

    def leaves_holding(self, triangle_index):
        """Leaves that have `triangle_index` assigned."""
        return [leaf for leaf in self.leaves_containing(self.triangle_aabbs[triangle_index])
                if triangle_index in self.node_triangles[leaf]]
